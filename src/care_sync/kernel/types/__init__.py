"""Kernel value types."""
from care_sync.kernel.types.ids import TEMP_ID_PREFIX, TemporaryIdFactory
from care_sync.kernel.types.keys import QueryKey, as_key
from care_sync.kernel.types.result import Err, Ok, Result

__all__ = ["Err", "Ok", "QueryKey", "Result", "TEMP_ID_PREFIX", "TemporaryIdFactory", "as_key"]
