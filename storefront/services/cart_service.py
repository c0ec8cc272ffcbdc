# storefront/services/cart_service.py
from decimal import Decimal
from typing import Union

from pydantic import ValidationError
from redis.exceptions import RedisError

from storefront.data.local_storage import CART_KEY, LocalStorage
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import TransientStoreError, UnauthenticatedError
from storefront.domain.schemas import CartLine, CartTotals, FoodItem, Identity, SizeOption, to_money
from storefront.repos.cart_repo import CartRepo
from storefront.services.lock_service import CartSyncLock
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def line_from_menu(item: FoodItem, size: SizeOption | None = None, quantity: int = 1) -> CartLine:
    """Build a cart line with the unit price fixed at ``price x size multiplier``."""
    multiplier = size.multiplier if size else Decimal("1")
    return CartLine(
        id=item.id,
        name=item.name,
        description=item.description or "",
        price=to_money(item.price * multiplier),
        image=item.image_url or "",
        category=item.category_id,
        featured=item.is_featured,
        available=item.is_available,
        quantity=quantity,
        size_option_id=size.id if size else None,
        size_name=size.name if size else None,
        size_multiplier=size.multiplier if size else None,
    )


# =====================================================
# BACKENDS
# =====================================================
class LocalCartBackend:
    """Device cart kept in local storage under the ``cart`` key."""

    kind = "local"

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def load(self) -> list[CartLine]:
        raw = self.storage.get_item(CART_KEY) or []
        try:
            return [CartLine.model_validate(entry) for entry in raw]
        except (TypeError, ValidationError) as e:
            logger.error(f"Discarding unreadable local cart on device {self.storage.device_id}: {e}")
            return []

    def save(self, lines: list[CartLine]) -> None:
        self.storage.set_item(CART_KEY, [line.model_dump(mode="json") for line in lines])

    def clear(self) -> None:
        self.storage.remove_item(CART_KEY)


class RemoteCartBackend:
    """Account cart in the order store, written as a whole (clear-then-insert)."""

    kind = "remote"

    def __init__(self, repo: CartRepo, identity: Identity):
        if identity.user_id is None:
            raise UnauthenticatedError("load an account cart")
        self.repo = repo
        self.identity = identity

    def _context(self) -> int:
        self.repo.set_user_context(self.identity.user_id, self.identity.role)
        return self.identity.user_id

    def load(self) -> list[CartLine]:
        user_id = self._context()
        return [
            CartLine(
                id=row.food_item_id,
                name=row.name,
                description=row.description or "",
                price=row.unit_price,
                image=row.image_url or "",
                category=row.category_id,
                featured=bool(row.is_featured),
                available=bool(row.is_available),
                quantity=row.quantity,
                size_option_id=row.size_option_id,
                size_name=row.size_name,
                size_multiplier=row.size_multiplier if row.size_option_id is not None else None,
            )
            for row in self.repo.get_cart_items(user_id)
        ]

    def save(self, lines: list[CartLine]) -> None:
        user_id = self._context()
        self.repo.replace_cart_items(
            user_id,
            [
                CartItemModel(
                    food_item_id=line.id,
                    name=line.name,
                    description=line.description,
                    image_url=line.image,
                    category_id=line.category,
                    is_featured=line.featured,
                    is_available=line.available,
                    quantity=line.quantity,
                    unit_price=line.price,
                    size_option_id=line.size_option_id,
                    size_name=line.size_name,
                    size_multiplier=line.size_multiplier or Decimal("1"),
                )
                for line in lines
            ],
        )

    def clear(self) -> None:
        user_id = self._context()
        self.repo.delete_cart_items(user_id)
        self.repo.commit()


CartBackend = Union[LocalCartBackend, RemoteCartBackend]


def migrate(source: CartBackend, target: CartBackend) -> list[CartLine]:
    """Move every line from ``source`` to ``target``; ``source`` is cleared only after the write lands."""
    lines = source.load()
    target.save(lines)
    source.clear()
    logger.info(f"Migrated {len(lines)} cart lines from {source.kind} to {target.kind} storage")
    return lines


# =====================================================
# RECONCILER
# =====================================================
class CartReconciler:
    """
    Owns the cart for one identity and keeps it durable.

    Mutations update ``lines`` first and persist afterwards; a failed remote
    write is mirrored to local storage instead of being raised.
    """

    def __init__(
        self,
        storage: LocalStorage,
        repo: CartRepo,
        sync_lock: CartSyncLock | None = None,
    ):
        self.local = LocalCartBackend(storage)
        self.repo = repo
        self.sync_lock = sync_lock
        self.backend: CartBackend = self.local
        self.identity: Identity | None = None
        self.lines: list[CartLine] = []

    # =====================================================
    # LOAD
    # =====================================================
    def load_for_identity(self, identity: Identity | None) -> list[CartLine]:
        self.identity = identity

        if identity is None or identity.is_kiosk:
            # kiosk carts belong to the terminal, not to the shared kiosk account
            self.backend = self.local
            self.lines = self.local.load()
            logger.info(f"Loaded {len(self.lines)} lines from device {self.local.storage.device_id}")
            return self.lines

        remote = RemoteCartBackend(self.repo, identity)
        self.backend = remote

        try:
            remote_lines = remote.load()
        except TransientStoreError as e:
            logger.warning(f"Remote cart for user {identity.user_id} unavailable, using device cart: {e}")
            self.lines = self.local.load()
            return self.lines

        local_lines = self.local.load()
        if remote_lines or not local_lines:
            self.lines = remote_lines
            logger.info(f"Loaded {len(self.lines)} lines for user {identity.user_id}")
            return self.lines

        self.lines = self._migrate_device_cart(remote, local_lines)
        return self.lines

    def _migrate_device_cart(self, remote: RemoteCartBackend, local_lines: list[CartLine]) -> list[CartLine]:
        user_id = remote.identity.user_id
        token = None
        if self.sync_lock is not None:
            try:
                token = self.sync_lock.acquire(user_id)
            except RedisError as e:
                logger.warning(f"Cart sync lock unavailable for user {user_id}, migrating unguarded: {e}")
                token = ""
            if token is None:
                # device cart stays put; the next load migrates it if the account cart is still empty
                logger.info(f"Cart sync already in progress for user {user_id}, skipping migration")
                return []

        try:
            return migrate(self.local, remote)
        except TransientStoreError as e:
            logger.warning(f"Cart migration for user {user_id} failed, keeping device cart: {e}")
            return local_lines
        finally:
            if token:
                try:
                    self.sync_lock.release(user_id, token)
                except RedisError as e:
                    logger.warning(f"Cart sync lock for user {user_id} not released: {e}")

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_line(self, line: CartLine, quantity: int = 1) -> list[CartLine]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        for index, existing in enumerate(self.lines):
            if existing.key == line.key:
                merged = existing.model_copy(update={"quantity": existing.quantity + quantity})
                logger.info(
                    f"Product {line.id} already in cart, quantity "
                    f"{existing.quantity} -> {merged.quantity}"
                )
                self.lines = [*self.lines[:index], merged, *self.lines[index + 1:]]
                break
        else:
            logger.info(f"Adding product {line.id} (size {line.size_option_id}) x{quantity}")
            self.lines = [*self.lines, line.model_copy(update={"quantity": quantity})]

        self._persist()
        return self.lines

    @staticmethod
    def _targets(line: CartLine, product_id: int, size_option_id: int | None) -> bool:
        # no size given: every line of the product
        if size_option_id is None:
            return line.id == product_id
        return line.key == (product_id, size_option_id)

    def remove_line(self, product_id: int, size_option_id: int | None = None) -> list[CartLine]:
        self.lines = [line for line in self.lines if not self._targets(line, product_id, size_option_id)]
        logger.info(f"Removed product {product_id} (size {size_option_id}) from cart")
        self._persist()
        return self.lines

    def set_quantity(self, product_id: int, quantity: int, size_option_id: int | None = None) -> list[CartLine]:
        if quantity <= 0:
            return self.remove_line(product_id, size_option_id)

        self.lines = [
            line.model_copy(update={"quantity": quantity}) if self._targets(line, product_id, size_option_id) else line
            for line in self.lines
        ]
        self._persist()
        return self.lines

    def clear(self) -> None:
        self.lines = []
        try:
            self.backend.clear()
        except (TransientStoreError, OSError) as e:
            logger.warning(f"Clearing {self.backend.kind} cart failed, clearing device copy: {e}")
            self._save_locally()
            return
        logger.info(f"Cleared {self.backend.kind} cart")

    # =====================================================
    # QUERY
    # =====================================================
    def totals(self) -> CartTotals:
        return CartTotals(
            total_price=sum((line.line_total for line in self.lines), Decimal("0.00")),
            total_items=sum(line.quantity for line in self.lines),
        )

    def _persist(self) -> None:
        try:
            self.backend.save(self.lines)
        except (TransientStoreError, OSError) as e:
            logger.warning(f"Saving {self.backend.kind} cart failed, mirroring to device storage: {e}")
            if self.backend is not self.local:
                self._save_locally()

    def _save_locally(self) -> None:
        try:
            self.local.save(self.lines)
        except OSError as e:
            logger.error(f"Device cart for {self.local.storage.device_id} not saved: {e}")
