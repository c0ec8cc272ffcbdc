# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import requests
import redis


def remote_retry(*exc_types: type[BaseException], base: float = 0.2, cap: float = 2, attempts: int = 3):
    """Retry a remote call on the given exception types, then re-raise the last one."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=base, min=base, max=cap),
        retry=retry_if_exception_type(exc_types),
    )


def catalog_retry():
    return remote_retry(requests.RequestException, base=0.3, cap=3)


def redis_retry():
    return remote_retry(redis.RedisError)
