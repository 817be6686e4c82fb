from typing import Callable
from uuid import uuid4

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid4())
