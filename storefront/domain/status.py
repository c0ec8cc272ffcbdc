# storefront/domain/status.py
from storefront.domain.errors import InvalidStatusTransitionError
from storefront.domain.schemas import OrderStatus, OrderType

S = OrderStatus

# current -> {next: order types the move is allowed for (None = any)}
TRANSITIONS: dict[OrderStatus, dict[OrderStatus, frozenset[OrderType] | None]] = {
    S.PENDING: {
        S.PREPARING: None,
        S.CANCELLED: None,
    },
    S.PREPARING: {
        S.OUT_FOR_DELIVERY: frozenset({OrderType.DELIVERY}),
        S.READY: frozenset({OrderType.PICKUP, OrderType.DINE_IN}),
    },
    S.READY: {S.COMPLETED: None},
    S.OUT_FOR_DELIVERY: {S.COMPLETED: None},
    S.COMPLETED: {},
    S.CANCELLED: {},
}

_LABELS = {
    S.PENDING: "Start Preparing",
    S.READY: "Mark Completed",
    S.OUT_FOR_DELIVERY: "Mark Delivered",
}


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[OrderStatus(status)]


def can_transition(current: OrderStatus, new: OrderStatus, order_type: OrderType) -> bool:
    allowed = TRANSITIONS[OrderStatus(current)]
    if OrderStatus(new) not in allowed:
        return False
    types = allowed[OrderStatus(new)]
    return types is None or OrderType(order_type) in types


def validate_transition(current: OrderStatus, new: OrderStatus, order_type: OrderType) -> None:
    if not can_transition(current, new, order_type):
        raise InvalidStatusTransitionError(
            OrderStatus(current).value, OrderStatus(new).value, OrderType(order_type).value
        )


def next_status(current: OrderStatus, order_type: OrderType) -> OrderStatus | None:
    """The forward step the staff board offers for an order (cancellation is never suggested)."""
    for candidate in TRANSITIONS[OrderStatus(current)]:
        if candidate is S.CANCELLED:
            continue
        if can_transition(current, candidate, order_type):
            return candidate
    return None


def next_status_label(current: OrderStatus, order_type: OrderType) -> str | None:
    current = OrderStatus(current)
    if current is S.PREPARING:
        return "Out for Delivery" if OrderType(order_type) is OrderType.DELIVERY else "Ready for Pickup"
    return _LABELS.get(current)
