# storefront/services/catalog_client.py
import requests

from storefront.domain.errors import CatalogError
from storefront.domain.schemas import FoodItem, SizeOption
from storefront.utils.retry import catalog_retry
from storefront.utils.settings import CATALOG_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogClient:
    """Reads menu items and size options from the catalog service."""

    def __init__(self, base_url: str | None = None, timeout: int = 2, session: requests.Session | None = None):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    @catalog_retry()
    def _get(self, path: str) -> dict | None:
        url = f"{self.base_url}{path}"
        logger.info(f"CatalogClient GET {url}")

        resp = self.http.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def fetch_food_item(self, food_item_id: int) -> FoodItem:
        data = self._get(f"/food-items/{food_item_id}")
        if data is None:
            raise CatalogError(f"food item {food_item_id}")
        return FoodItem.model_validate(data)

    def fetch_size_option(self, size_option_id: int) -> SizeOption:
        data = self._get(f"/sizes/{size_option_id}")
        if data is None:
            raise CatalogError(f"size option {size_option_id}")
        return SizeOption.model_validate(data)
