# pyngystore/immutable_utils.py
import json
from typing import Any, Type, TypeVar

from immutables import Map
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def to_immutable(obj: Any) -> Any:
    """將字典、列表、集合遞迴轉換為不可變形式 (Map、tuple、frozenset)"""
    if isinstance(obj, BaseModel):
        return obj
    elif isinstance(obj, (dict, Map)):
        return Map({k: to_immutable(v) for k, v in obj.items()})
    elif isinstance(obj, list):
        return tuple(to_immutable(i) for i in obj)
    elif isinstance(obj, (set, frozenset)):
        return frozenset(to_immutable(i) for i in obj)
    return obj


def to_pydantic(data: Any, model_class: Type[T]) -> T:
    """將字典或 Map 轉換回 Pydantic 模型"""
    return model_class.model_validate(to_dict(data))


def restore_like(sample: Any, data: Any) -> Any:
    """依照 sample 的類型還原已解碼的資料 (Map 或 Pydantic 模型)，其他情況原樣返回"""
    if isinstance(data, (dict, Map)):
        if isinstance(sample, BaseModel):
            return to_pydantic(data, type(sample))
        if isinstance(sample, Map):
            return to_immutable(data)
    return data


def to_dict(obj: Any) -> Any:
    """將 Map、pydantic 模型及其巢狀結構轉換為可 JSON 化的普通結構"""
    if isinstance(obj, BaseModel):
        return {k: to_dict(getattr(obj, k)) for k in type(obj).model_fields}
    elif isinstance(obj, (Map, dict)):
        return {k: to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (tuple, list)):
        return [to_dict(i) for i in obj]
    elif isinstance(obj, (set, frozenset)):
        return [to_dict(i) for i in obj]
    return obj


def dumps(state: Any) -> str:
    """序列化狀態供 DevTools 傳輸"""
    return json.dumps(to_dict(state), default=repr)


def loads(raw: Any) -> Any:
    """解析 DevTools 傳來的 JSON 字串；已解析的值原樣返回"""
    if isinstance(raw, (str, bytes, bytearray)):
        return json.loads(raw)
    return raw
