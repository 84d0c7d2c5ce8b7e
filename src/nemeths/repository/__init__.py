from .json_store import JsonResultRepository

__all__ = ["JsonResultRepository"]
