"""Dialogs shown on the touch panel."""

from typing import Optional, TYPE_CHECKING

from ..utils.logger import get_logger
from .feedback_ids import FeedbackId

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl
    from ..presets.registry import PresetRegistry


logger = get_logger("dialogs")

DEFAULT_TERMINATOR = "✪"
NAME_PLACEHOLDER = "1-20 Alphanumeric Names Accepted"
PIN_PLACEHOLDER = "4-8 Digit Numeric Pin Accepted"
NAME_ERROR = "⚠️ Limited to 1-20 Alphanumeric Characters ⚠️"
PIN_ERROR = "⚠️ Invalid Pin, Try Again ⚠️"


def _flag(title: str) -> str:
    return f"⚠️ {title} ⚠️"


class DialogManager:
    """Builds text input dialogs and prompts for the preset workflow.

    Every dialog carries a feedback id so its response can be routed back
    to the operation that opened it.
    """

    def __init__(self, device: "DeviceControl", registry: "PresetRegistry"):
        self._device = device
        self._registry = registry

    def _preset_name(self, index: int) -> str:
        entry = self._registry.resolve(index)
        return entry.name if entry else f"Index {index}"

    async def pin_entry(
        self,
        feedback_id: str = FeedbackId.PIN_MAKER_ACCESS,
        is_error: bool = False,
        preset_index: Optional[int] = None,
        peripheral_id: Optional[str] = None
    ) -> None:
        """Ask for the maker pin, either to open the maker or to confirm a delete."""
        title = "Monitor Preset Maker Pin"
        text = "Enter your pin below to access the Monitor Preset Maker"
        submit = "Unlock"

        if preset_index is not None and feedback_id.startswith(FeedbackId.PIN_CONFIRM_DELETE):
            title = "Are you sure?"
            text = f"Enter the Monitor Preset Maker pin to confirm deletion of<p>Preset: {self._preset_name(preset_index)}"
            submit = "Delete ⚠️"

        if is_error:
            title = _flag(title)
            text = f"{PIN_ERROR}<p>{text}"

        await self._device.text_input(
            title=title,
            text=text,
            placeholder=PIN_PLACEHOLDER,
            duration=60,
            input_type="PIN",
            submit_text=submit,
            feedback_id=feedback_id,
            peripheral_id=peripheral_id
        )

    async def confirm_remove(self, preset_index: int, peripheral_id: Optional[str] = None) -> None:
        """Confirm a delete with a prompt when pin protection is off."""
        await self._device.prompt(
            title="Are you sure?",
            text=f"Confirm deletion of<p>Preset: {self._preset_name(preset_index)}",
            options=["Delete ⚠️", "Dismiss"],
            feedback_id=FeedbackId.confirm_delete_prompt(preset_index),
            duration=60,
            peripheral_id=peripheral_id
        )

    async def pin_edit(
        self,
        feedback_id: str = FeedbackId.PIN_EDIT_VALIDATE,
        is_error: bool = False,
        peripheral_id: Optional[str] = None
    ) -> None:
        """One step of the change-pin flow: validate, new, confirm."""
        title = "Monitor Preset Pin Edit"
        text = "Enter your current pin to confirm access"
        submit = "Next"

        if feedback_id == FeedbackId.PIN_EDIT_NEW:
            title = "Monitor Preset New Pin"
            text = "Enter a NEW 4-8 Digit Numeric Pin for the Monitor Preset Maker"
        elif feedback_id == FeedbackId.PIN_EDIT_CONFIRM:
            title = "Monitor Preset Confirm Pin"
            text = "Confirm your NEW 4-8 Digit Numeric Pin for the Monitor Preset Maker"
            submit = "Save"

        if is_error:
            title = _flag(title)
            text = f"{PIN_ERROR}<p>{text}"

        await self._device.text_input(
            title=title,
            text=text,
            placeholder=PIN_PLACEHOLDER,
            duration=60,
            input_type="PIN",
            submit_text=submit,
            feedback_id=feedback_id,
            peripheral_id=peripheral_id
        )

    async def pin_saved(self, peripheral_id: Optional[str] = None) -> None:
        await self._device.prompt(title="New Pin Saved!", text="", options=["Dismiss"], peripheral_id=peripheral_id)

    async def save_preset(self, is_error: bool = False, peripheral_id: Optional[str] = None) -> None:
        text = "Enter a name for your new Monitor Preset"
        if is_error:
            text = f"{NAME_ERROR}<p>{text}"

        await self._device.text_input(
            title="Save Monitor Preset",
            text=text,
            placeholder=NAME_PLACEHOLDER,
            duration=120,
            submit_text="Save",
            feedback_id=FeedbackId.SAVE_PRESET,
            peripheral_id=peripheral_id
        )

    async def rename_preset(
        self,
        preset_index: int,
        is_error: bool = False,
        redo_name: Optional[str] = None,
        peripheral_id: Optional[str] = None
    ) -> None:
        current = self._preset_name(preset_index)
        text = f"Enter a new name for Monitor Preset<p>{current}"
        if is_error:
            text = f"{NAME_ERROR}<p>{text}"

        await self._device.text_input(
            title="Rename Monitor Preset",
            text=text,
            placeholder=NAME_PLACEHOLDER,
            duration=120,
            submit_text="Update",
            input_text=redo_name if redo_name is not None else current,
            feedback_id=FeedbackId.rename_preset(preset_index),
            peripheral_id=peripheral_id
        )

    async def preset_options(self, preset_index: int, is_default: bool, peripheral_id: Optional[str] = None) -> None:
        """The long-press submenu for a preset."""
        default_action = "Remove" if is_default else "Set as"
        await self._device.prompt(
            title="Monitor Preset Options",
            text=f"Choose an option below to modify<p>{self._preset_name(preset_index)} || Index: {preset_index}",
            options=[
                "Rename Preset",
                f"{default_action} Default Preset => {DEFAULT_TERMINATOR}",
                "⚠️ Delete Preset ⚠️",
                "Dismiss"
            ],
            feedback_id=FeedbackId.preset_options(preset_index, is_default),
            peripheral_id=peripheral_id
        )

    async def output_name(
        self,
        connector: str,
        is_error: bool = False,
        weight: Optional[float] = None,
        redo_name: Optional[str] = None,
        peripheral_id: Optional[str] = None
    ) -> None:
        text = "Helps identify which display you're working with in Monitor Preset Maker (Weight < 8.0)"
        input_text = self._registry.config.output_name(connector)
        if is_error:
            text = f"⚠️ Name too large. Weight: {weight}<p>{text}"
            input_text = redo_name

        await self._device.text_input(
            title="Edit HDMI Output Name",
            text=text,
            placeholder="Enter Monitor Name Here (Weight < 8.0)",
            submit_text="Update",
            input_text=input_text,
            feedback_id=FeedbackId.output_name(connector),
            peripheral_id=peripheral_id
        )

    async def output_name_help(self, peripheral_id: Optional[str] = None) -> None:
        await self._device.prompt(
            title="Video Output Names",
            text="Name your Video Outputs with a Character Weight 8.0 or less<p>Character Weights outlined below",
            options=[
                "[Score 1.0] W, M, @",
                "[Score 0.75] A-Z, 0-9",
                "[Score 0.3] iltfj.,:;'`!- (spaces)",
                "Dismiss"
            ],
            peripheral_id=peripheral_id
        )

    async def select_source_first(self, peripheral_id: Optional[str] = None) -> None:
        await self._device.prompt(
            title="Please Select a Source",
            text="To Matrix Route to a display, you must select an input source first",
            options=["Dismiss"],
            duration=20,
            peripheral_id=peripheral_id
        )
