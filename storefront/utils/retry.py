# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import redis

from storefront.domain.errors import OrderNumberTaken


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


#order number collision -> draw again, no wait
def order_number_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(5),
        retry=retry_if_exception_type(OrderNumberTaken),
    )
