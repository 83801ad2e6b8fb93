"""State reducer for the capture session.

Flow:
  LOCAL_FILE <-> REMOTE_URL <-> LIVE_CAPTURE (any to any)
  entering LIVE_CAPTURE opens the selected device, leaving it closes the stream
"""

from dataclasses import replace

from .state import AcquisitionMode, SelectorState
from .actions import (
    Action,
    ChangeMode, SelectDevice, DevicesListed,
    StreamOpened, StreamFailed,
    RecognitionStarted, RecognitionFinished,
    CloseSession,
)
from .effects import Effect, OpenStream, CloseStream, EndSession


def update(state: SelectorState, action: Action) -> tuple[SelectorState, list[Effect]]:
    """Pure reducer function: (state, action) -> (new_state, effects)"""

    if state.closed:
        return state, []

    match action:
        # ================================================================
        # Source selection
        # ================================================================

        case ChangeMode(mode):
            if mode is state.mode:
                return state, []

            effects: list[Effect] = []
            stream_device = state.stream_device
            if state.is_live:
                effects.append(CloseStream())
                stream_device = None
            if mode is AcquisitionMode.LIVE_CAPTURE and state.selected_device:
                effects.append(OpenStream(state.selected_device))
                stream_device = state.selected_device

            return replace(state, mode=mode, stream_device=stream_device), effects

        case SelectDevice(device_id):
            selected = device_id or None
            if selected == state.selected_device and (not state.is_live or selected == state.stream_device):
                return state, []

            new_state = replace(state, selected_device=selected)
            if not state.is_live:
                return new_state, []

            # Previous stream is always released before the next one opens
            effects = [CloseStream()]
            if selected:
                effects.append(OpenStream(selected))
            return replace(new_state, stream_device=selected), effects

        case DevicesListed(devices):
            devices = tuple(devices)
            known = {device.id for device in devices}
            if state.selected_device in known:
                return replace(state, devices=devices), []

            selected = devices[0].id if devices else None
            new_state = replace(state, devices=devices, selected_device=selected)
            if not state.is_live or selected == state.stream_device:
                return new_state, []

            effects = [CloseStream()]
            if selected:
                effects.append(OpenStream(selected))
            return replace(new_state, stream_device=selected), effects

        # ================================================================
        # Stream lifecycle
        # ================================================================

        case StreamOpened(device_id):
            # Stale if the user moved on while the device was opening
            if state.is_live and device_id == state.selected_device:
                return replace(state, stream_device=device_id), []
            return state, []

        case StreamFailed(device_id, _message):
            if state.stream_device == device_id:
                return replace(state, stream_device=None), []
            return state, []

        # ================================================================
        # Recognition
        # ================================================================

        case RecognitionStarted():
            return replace(state, busy=True), []

        case RecognitionFinished():
            return replace(state, busy=False), []

        # ================================================================
        # Lifecycle
        # ================================================================

        case CloseSession():
            return (
                replace(state, closed=True, busy=False, stream_device=None),
                [CloseStream(), EndSession()]
            )

        case _:
            return state, []
