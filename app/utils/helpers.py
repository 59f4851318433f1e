"""
Helper utilities
"""
import time
import uuid


def generate_id() -> str:
    """Collision-resistant id for products and links"""
    return uuid.uuid4().hex


def now_ms() -> int:
    """Current time as epoch milliseconds"""
    return int(time.time() * 1000)
