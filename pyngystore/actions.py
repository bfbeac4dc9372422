"""
基於 PyNgyStore 的 Action 定義與註冊模組。

此模組提供:
- Action: 送往 DevTools 的不可變動作記錄 (type + params)
- ActionHandle: 註冊 reducer 時取得的不透明句柄
- ActionRegistry: 以 reducer 身分為鍵的註冊表，支援依名稱、句柄或函數查找
"""
import inspect
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from .errors import InvalidReducerError
from .types import Reducer


class Action:
    """
    表示一次已分發的動作，用於 DevTools 與日誌。

    屬性:
        type: 動作名稱（管道分發時為 "a->b" 形式）
        params: 分發時帶入的參數
    """
    __slots__ = ('type', 'params')

    def __init__(self, type: str, params: Tuple[Any, ...] = ()):
        super().__setattr__('type', type)
        super().__setattr__('params', tuple(params))

    def __setattr__(self, name, value):
        if name not in self.__slots__:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")
        if hasattr(self, name):
            raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, Action):
            return False
        return self.type == other.type and self.params == other.params

    def __hash__(self):
        return hash((self.type, self.params))

    def __repr__(self):
        return f"Action(type='{self.type}', params={self.params!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "params": list(self.params)}


class ActionHandle:
    """
    register_action 回傳的句柄。

    可以直接傳給 dispatch、pipe、unregister_action 與 is_action_registered，
    呼叫端不需要保留原本的 reducer 函數。
    """
    __slots__ = ('name', 'reducer')

    def __init__(self, name: str, reducer: Reducer):
        super().__setattr__('name', name)
        super().__setattr__('reducer', reducer)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __repr__(self):
        return f"ActionHandle(name='{self.name}')"


class DispatchAction(NamedTuple):
    reducer: Reducer
    params: Tuple[Any, ...]


ActionRef = Union[str, ActionHandle, Reducer]


def count_positional_parameters(fn: Any) -> int:
    """
    計算函數可接受的位置參數數量（不含 *args）。

    Args:
        fn: 任意可呼叫物件

    Returns:
        位置參數數量
    """
    parameters = inspect.signature(fn).parameters.values()
    return sum(
        1 for p in parameters
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )


def accepts_var_positional(fn: Any) -> bool:
    return any(
        p.kind is inspect.Parameter.VAR_POSITIONAL
        for p in inspect.signature(fn).parameters.values()
    )


class ActionRegistry:
    """
    管理已註冊的 reducers。

    以 reducer 的身分為鍵，保留註冊順序，依名稱查找時返回最先註冊的匹配項。
    """

    def __init__(self):
        self._actions: Dict[Reducer, ActionHandle] = {}

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[ActionHandle]:
        return iter(list(self._actions.values()))

    def register(self, name: str, reducer: Reducer) -> ActionHandle:
        """
        註冊一個 reducer。

        Args:
            name: 動作名稱
            reducer: 狀態轉換函數，第一個參數為目前狀態

        Returns:
            新的 ActionHandle

        Raises:
            InvalidReducerError: reducer 沒有任何位置參數
        """
        if count_positional_parameters(reducer) == 0:
            raise InvalidReducerError(reducer)

        handle = ActionHandle(name, reducer)
        # 重新註冊時保留原本的順序位置
        self._actions[reducer] = handle
        return handle

    def unregister(self, ref: Union[ActionHandle, Reducer]) -> None:
        reducer = ref.reducer if isinstance(ref, ActionHandle) else ref
        if reducer in self._actions:
            del self._actions[reducer]

    def is_registered(self, ref: ActionRef) -> bool:
        return self.resolve(ref) is not None

    def resolve(self, ref: ActionRef) -> Optional[Reducer]:
        """
        依名稱、句柄或 reducer 身分查找已註冊的 reducer。

        Returns:
            已註冊的 reducer，找不到時返回 None
        """
        if isinstance(ref, str):
            for reducer, handle in self._actions.items():
                if handle.name == ref:
                    return reducer
            return None

        reducer = ref.reducer if isinstance(ref, ActionHandle) else ref
        try:
            registered = reducer in self._actions
        except TypeError:
            # 不可雜湊的物件不可能被註冊過
            return None
        return reducer if registered else None

    def find_by_function_name(self, name: str) -> Optional[Reducer]:
        for reducer in self._actions:
            if getattr(reducer, "__name__", None) == name:
                return reducer
        return None

    def name_of(self, reducer: Reducer) -> str:
        return self._actions[reducer].name

    def handles(self) -> List[ActionHandle]:
        return list(self._actions.values())
