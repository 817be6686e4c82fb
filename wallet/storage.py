import os


def exists(path: str) -> bool:
    return os.path.exists(path)


def read_all(path: str) -> str:
    # FileNotFoundError / OSError propagate to the caller
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def write_all(path: str, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
