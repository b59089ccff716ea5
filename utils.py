from datetime import timezone
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated = "auto")

def hash(password):
    return pwd_context.hash(password)

def verify(user_password, hashed_password):
    return pwd_context.verify(user_password, hashed_password)

def to_utc_naive(ts):
    """Timestamps are stored naive in UTC; aware values are converted first."""
    if ts is None or ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)

def overlaps(start_a, end_a, start_b, end_b):
    # half-open [start, end): touching intervals do not overlap
    return not (end_a <= start_b or start_a >= end_b)
