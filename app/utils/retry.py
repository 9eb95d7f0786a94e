# app/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import requests
import redis


def backoff_retry(exc_types, attempts: int = 3, multiplier: float = 0.3, max_wait: float = 3):
    """Exponential backoff for calls that are safe to repeat."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=multiplier, min=multiplier, max=max_wait),
        retry=retry_if_exception_type(exc_types),
    )


# only for idempotent requests (token fetches, GETs); never for STK pushes or charges
def http_retry():
    return backoff_retry(
        (requests.ConnectionError, requests.Timeout),
        multiplier=0.3,
        max_wait=3,
    )


def redis_retry():
    return backoff_retry(redis.RedisError, multiplier=0.2, max_wait=2)
