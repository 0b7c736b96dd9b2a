"""Keyboard, mouse and gamepad state with a named action layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, Optional

from mintengine.vector import Vec2

MAX_PLAYERS = 4
MAX_KEYS = 512
MAX_PAD_BUTTONS = 24
MAX_PC_KEYS = 0x167
DEAD_ZONE = 0.2
ACTIVITY_THRESHOLD = 0.2
_STICK_RANGE = 32767.0
_TRIGGER_RANGE = 255.0


class Key(IntEnum):
    """Key codes; gamepad codes are for the first player (see ``pad_key``)."""

    BACKSPACE = 0x08
    ENTER = 0x0D
    ESCAPE = 0x1B
    SHIFT = 0x10
    CONTROL = 0x11
    ALT = 0x12
    SPACE = 0x20

    LEFT = 0x25
    UP = 0x26
    RIGHT = 0x27
    DOWN = 0x28

    DIGIT_0 = 0x03
    DIGIT_1 = 0x04
    DIGIT_2 = 0x05
    DIGIT_3 = 0x06
    DIGIT_4 = 0x07
    DIGIT_5 = 0x08
    DIGIT_6 = 0x09
    DIGIT_7 = 0x0A
    DIGIT_8 = 0x0B
    DIGIT_9 = 0x0C

    A = 0x41
    B = 0x42
    C = 0x43
    D = 0x44
    E = 0x45
    F = 0x46
    G = 0x47
    H = 0x48
    I = 0x49  # noqa: E741
    J = 0x4A
    K = 0x4B
    L = 0x4C
    M = 0x4D
    N = 0x4E
    O = 0x4F  # noqa: E741
    P = 0x50
    Q = 0x51
    R = 0x52
    S = 0x53
    T = 0x54
    U = 0x55
    V = 0x56
    W = 0x57
    X = 0x58
    Y = 0x59
    Z = 0x5A
    BACKQUOTE = 0x60

    F1 = 0x70
    F2 = 0x71
    F3 = 0x72
    F4 = 0x73
    F5 = 0x74
    F6 = 0x75
    F7 = 0x76
    F8 = 0x77
    F9 = 0x78
    F10 = 0x79
    F11 = 0x7A
    F12 = 0x7B

    MOUSE0 = 0x15E
    MOUSE1 = 0x15F
    MOUSE2 = 0x160
    MOUSE3 = 0x161
    MOUSE4 = 0x162
    MB0 = 0x15E
    MB1 = 0x15F
    MB2 = 0x160
    MB3 = 0x161
    MB4 = 0x162
    LMB = 0x15E
    RMB = 0x15F
    MMB = 0x160
    MOUSE_WHEEL_UP = 0x161
    MOUSE_WHEEL_DOWN = 0x162
    MOUSE_MOVE_UP = 0x163
    MOUSE_MOVE_DOWN = 0x164
    MOUSE_MOVE_LEFT = 0x165
    MOUSE_MOVE_RIGHT = 0x166

    PAD_UP = 0x168
    PAD_DOWN = 0x169
    PAD_LEFT = 0x16A
    PAD_RIGHT = 0x16B
    PAD_START = 0x16C
    PAD_BACK = 0x16D
    PAD_L3 = 0x16E
    PAD_R3 = 0x16F
    PAD_LB = 0x170
    PAD_RB = 0x171
    PAD_A = 0x172
    PAD_B = 0x173
    PAD_X = 0x174
    PAD_Y = 0x175
    PAD_LS_UP = 0x176
    PAD_LS_DOWN = 0x177
    PAD_LS_LEFT = 0x178
    PAD_LS_RIGHT = 0x179
    PAD_RS_UP = 0x17A
    PAD_RS_DOWN = 0x17B
    PAD_RS_LEFT = 0x17C
    PAD_RS_RIGHT = 0x17D
    PAD_LT = 0x17E
    PAD_RT = 0x17F

    PAD1_UP = 0x180
    PAD1_DOWN = 0x181
    PAD1_LEFT = 0x182
    PAD1_RIGHT = 0x183
    PAD1_START = 0x184
    PAD1_BACK = 0x185
    PAD1_L3 = 0x186
    PAD1_R3 = 0x187
    PAD1_LB = 0x188
    PAD1_RB = 0x189
    PAD1_A = 0x18A
    PAD1_B = 0x18B
    PAD1_X = 0x18C
    PAD1_Y = 0x18D
    PAD1_LS_UP = 0x18E
    PAD1_LS_DOWN = 0x18F
    PAD1_LS_LEFT = 0x190
    PAD1_LS_RIGHT = 0x191
    PAD1_RS_UP = 0x192
    PAD1_RS_DOWN = 0x193
    PAD1_RS_LEFT = 0x194
    PAD1_RS_RIGHT = 0x195
    PAD1_LT = 0x196
    PAD1_RT = 0x197


class InputDevice(Enum):
    """Device a player used most recently."""

    NONE = 0
    KEYBOARD = 1
    GAMEPAD = 2


_DIGITAL_BUTTONS = frozenset(
    {
        Key.PAD_UP, Key.PAD_DOWN, Key.PAD_LEFT, Key.PAD_RIGHT,
        Key.PAD_START, Key.PAD_BACK, Key.PAD_L3, Key.PAD_R3,
        Key.PAD_LB, Key.PAD_RB, Key.PAD_A, Key.PAD_B, Key.PAD_X, Key.PAD_Y,
    }
)


def pad_key(key: int, player_index: int) -> int:
    """Code of a first-player gamepad key for another player."""
    return int(key) + MAX_PAD_BUTTONS * player_index


@dataclass(frozen=True)
class GamepadState:
    """One polled gamepad: pressed digital buttons and raw analogue readings.

    Sticks are signed 16-bit readings, triggers range over 0..255.
    """

    buttons: frozenset = frozenset()
    left_stick: tuple[int, int] = (0, 0)
    right_stick: tuple[int, int] = (0, 0)
    left_trigger: int = 0
    right_trigger: int = 0

    def __post_init__(self) -> None:
        buttons = frozenset(Key(b) for b in self.buttons)
        unknown = buttons - _DIGITAL_BUTTONS
        if unknown:
            names = ", ".join(sorted(k.name for k in unknown))
            raise ValueError(f"not a digital gamepad button: {names}")
        object.__setattr__(self, "buttons", buttons)


@dataclass(frozen=True)
class _Binding:
    keys: tuple[int, int, int, int]


def _stick(value: float) -> tuple[float, float]:
    """Split a signed axis into (positive, negative) magnitudes past the dead zone."""
    return (
        value if value >= DEAD_ZONE else 0.0,
        -value if value <= -DEAD_ZONE else 0.0,
    )


def _trigger(value: float) -> float:
    return value if value >= DEAD_ZONE else 0.0


class Input:
    """Per-frame key states, mouse tracking, gamepad slots and named actions."""

    def __init__(
        self,
        cursor: Vec2 = Vec2(),
        warp_cursor: Optional[Callable[[int, int], None]] = None,
        show_cursor: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self._state = [0.0] * MAX_KEYS
        self._last = [0.0] * MAX_KEYS
        self.mouse_position = Vec2(float(cursor.x), float(cursor.y))
        self.mouse_delta = Vec2()
        self._wheel = 0
        self.mouse_locked = False
        self._gamepad_ids: list[Optional[int]] = [None] * MAX_PLAYERS
        self._active: list[InputDevice] = [InputDevice.NONE] * MAX_PLAYERS
        self._actions: list[dict[str, list[_Binding]]] = [
            {} for _ in range(MAX_PLAYERS)
        ]
        self._warp_cursor = warp_cursor
        self._show_cursor = show_cursor

    @property
    def mouse_wheel(self) -> float:
        return float(self._wheel)

    @staticmethod
    def _index(key: int) -> int:
        index = int(key)
        if not 0 <= index < MAX_KEYS:
            raise IndexError(f"key code {index} out of range")
        return index

    @staticmethod
    def _valid_player(player_index: int) -> bool:
        return 0 <= player_index < MAX_PLAYERS

    # frame update -----------------------------------------------------

    def update(self, cursor: Vec2, window_size: Vec2, app_active: bool) -> None:
        """Start a new frame given the cursor in client coordinates."""
        if not app_active:
            self._state = [0.0] * MAX_KEYS
        self._last = list(self._state)

        if any(v > ACTIVITY_THRESHOLD for v in self._last[:MAX_PC_KEYS]):
            self._active[0] = InputDevice.KEYBOARD

        new_pos = Vec2(float(cursor.x), float(cursor.y))
        self.mouse_delta = new_pos - self.mouse_position
        self.mouse_position = new_pos
        if self.mouse_locked and app_active:
            x = int(int(window_size.x) / 2)
            y = int(int(window_size.y) / 2)
            self.set_mouse_position(x, y)

        dx, dy = self.mouse_delta.x, self.mouse_delta.y
        self._state[Key.MOUSE_MOVE_UP] = dy if dy > 0.0 else 0.0
        self._state[Key.MOUSE_MOVE_DOWN] = -dy if dy < 0.0 else 0.0
        self._state[Key.MOUSE_MOVE_RIGHT] = dx if dx > 0.0 else 0.0
        self._state[Key.MOUSE_MOVE_LEFT] = -dx if dx < 0.0 else 0.0
        self._wheel = 0
        self._state[Key.MOUSE_WHEEL_UP] = 0.0
        self._state[Key.MOUSE_WHEEL_DOWN] = 0.0

    def _using_gamepad(self, player_index: int) -> bool:
        start = pad_key(Key.PAD_UP, player_index)
        return any(
            v > ACTIVITY_THRESHOLD
            for v in self._state[start:start + MAX_PAD_BUTTONS]
        )

    def apply_gamepad(self, device_index: int, state: Optional[GamepadState]) -> None:
        """Feed one device's polled state; ``None`` means it is not connected."""
        if state is None:
            for player, dev in enumerate(self._gamepad_ids):
                if dev == device_index:
                    self._gamepad_ids[player] = None
                    self._active[player] = InputDevice.NONE
                    break
            return

        player = next(
            (p for p, dev in enumerate(self._gamepad_ids) if dev == device_index),
            None,
        )
        if player is None and state.buttons:
            player = next(
                (p for p, dev in enumerate(self._gamepad_ids) if dev is None), None
            )
            if player is not None:
                self._gamepad_ids[player] = device_index
        if player is None:
            return

        for button in _DIGITAL_BUTTONS:
            self._state[pad_key(button, player)] = 1.0 if button in state.buttons else 0.0

        lx, ly = (v / _STICK_RANGE for v in state.left_stick)
        rx, ry = (v / _STICK_RANGE for v in state.right_stick)
        analog = {
            (Key.PAD_LS_RIGHT, Key.PAD_LS_LEFT): lx,
            (Key.PAD_LS_UP, Key.PAD_LS_DOWN): ly,
            (Key.PAD_RS_RIGHT, Key.PAD_RS_LEFT): rx,
            (Key.PAD_RS_UP, Key.PAD_RS_DOWN): ry,
        }
        for (pos_key, neg_key), value in analog.items():
            pos, neg = _stick(value)
            self._state[pad_key(pos_key, player)] = pos
            self._state[pad_key(neg_key, player)] = neg

        self._state[pad_key(Key.PAD_LT, player)] = _trigger(
            state.left_trigger / _TRIGGER_RANGE
        )
        self._state[pad_key(Key.PAD_RT, player)] = _trigger(
            state.right_trigger / _TRIGGER_RANGE
        )

        if self._using_gamepad(player):
            self._active[player] = InputDevice.GAMEPAD

    # raw keys ---------------------------------------------------------

    def down(self, key: int) -> bool:
        return self._state[self._index(key)] > 0.0

    def hit(self, key: int) -> bool:
        """Pressed this frame but not the previous one."""
        i = self._index(key)
        return self._state[i] > 0.0 and self._last[i] == 0.0

    def up(self, key: int) -> bool:
        """Released this frame after being held the previous one."""
        i = self._index(key)
        return self._state[i] == 0.0 and self._last[i] > 0.0

    def axis(self, key: int) -> float:
        return self._state[self._index(key)]

    def axis_pair(self, positive_key: int, negative_key: int) -> float:
        return self.axis(positive_key) - self.axis(negative_key)

    def axis_vec2(
        self,
        x_positive_key: int,
        x_negative_key: int,
        y_positive_key: int,
        y_negative_key: int,
    ) -> Vec2:
        return Vec2(
            self.axis_pair(x_positive_key, x_negative_key),
            self.axis_pair(y_positive_key, y_negative_key),
        )

    def set_key_state(self, key: int, state: float) -> None:
        self._state[self._index(key)] = float(state)

    def set_mouse_wheel(self, delta: int) -> None:
        self._wheel = int(delta)
        self._state[Key.MOUSE_WHEEL_UP] = float(delta) if delta > 0 else 0.0
        self._state[Key.MOUSE_WHEEL_DOWN] = float(-delta) if delta < 0 else 0.0

    def set_mouse_position(self, x: float, y: float) -> None:
        """Move the cursor to client coordinates, truncated to whole pixels."""
        ix, iy = int(x), int(y)
        if self._warp_cursor is not None:
            self._warp_cursor(ix, iy)
        self.mouse_position = Vec2(float(ix), float(iy))

    def lock_mouse(self, lock: bool, app_active: bool) -> None:
        """Lock the cursor to the window centre; only possible while active."""
        lock = bool(lock) and bool(app_active)
        if self.mouse_locked == lock:
            return
        self.mouse_locked = lock
        if self._show_cursor is not None:
            self._show_cursor(not lock)

    # actions ----------------------------------------------------------

    def _bind(self, action: str, keys: tuple[int, ...], player_index: int) -> None:
        if not self._valid_player(player_index):
            return
        padded = tuple(int(k) for k in keys) + (0,) * (4 - len(keys))
        self._actions[player_index].setdefault(action, []).append(_Binding(padded))

    def register(self, action: str, key: int, player_index: int = 0) -> None:
        self._bind(action, (key,), player_index)

    def register_1d(
        self, action: str, positive_key: int, negative_key: int, player_index: int = 0
    ) -> None:
        self._bind(action, (positive_key, negative_key), player_index)

    def register_2d(
        self,
        action: str,
        x_positive_key: int,
        x_negative_key: int,
        y_positive_key: int,
        y_negative_key: int,
        player_index: int = 0,
    ) -> None:
        self._bind(
            action,
            (x_positive_key, x_negative_key, y_positive_key, y_negative_key),
            player_index,
        )

    def unregister_all(self) -> None:
        for actions in self._actions:
            actions.clear()

    def _bindings(self, action: str, player_index: int) -> list[_Binding]:
        if not self._valid_player(player_index):
            return []
        return self._actions[player_index].get(action, [])

    def action_down(self, action: str, player_index: int = 0) -> bool:
        return any(self.down(b.keys[0]) for b in self._bindings(action, player_index))

    def action_up(self, action: str, player_index: int = 0) -> bool:
        return any(self.up(b.keys[0]) for b in self._bindings(action, player_index))

    def action_hit(self, action: str, player_index: int = 0) -> bool:
        return any(self.hit(b.keys[0]) for b in self._bindings(action, player_index))

    def action_axis(self, action: str, player_index: int = 0) -> float:
        """Largest non-negative value among the action's main keys."""
        return max(
            (self.axis(b.keys[0]) for b in self._bindings(action, player_index)),
            default=0.0,
            key=float,
        ) if self._bindings(action, player_index) else 0.0

    def action_axis_vec2(
        self,
        x_positive_action: str,
        x_negative_action: str,
        y_positive_action: str,
        y_negative_action: str,
        player_index: int = 0,
    ) -> Vec2:
        if not self._valid_player(player_index):
            return Vec2()
        return Vec2(
            self.action_axis(x_positive_action, player_index)
            - self.action_axis(x_negative_action, player_index),
            self.action_axis(y_positive_action, player_index)
            - self.action_axis(y_negative_action, player_index),
        )

    @staticmethod
    def _combine(current: float, value: float) -> float:
        return min(0.0, current, value) + max(0.0, current, value)

    def action_axis_1d(self, action: str, player_index: int = 0) -> float:
        """Sum of the strongest negative and strongest positive 1D bindings."""
        result = 0.0
        for b in self._bindings(action, player_index):
            result = self._combine(result, self.axis_pair(b.keys[0], b.keys[1]))
        return result

    def action_axis_2d(self, action: str, player_index: int = 0) -> Vec2:
        """Per-component combination of the action's 2D bindings."""
        x = y = 0.0
        for b in self._bindings(action, player_index):
            v = self.axis_vec2(*b.keys)
            x = self._combine(x, v.x)
            y = self._combine(y, v.y)
        return Vec2(x, y)

    def active_device(self, player_index: int = 0) -> InputDevice:
        if not self._valid_player(player_index):
            return InputDevice.NONE
        return self._active[player_index]