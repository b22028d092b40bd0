"""Correlation ids carried by dialogs and echoed back in their responses."""

from typing import Optional, Tuple


class FeedbackId:
    PIN_MAKER_ACCESS = "dop_pinEntry_MakerAccess"
    PIN_CONFIRM_DELETE = "dop_pinEntry_ConfirmDelete"
    PROMPT_CONFIRM_DELETE = "dop_Prompt_ConfirmDelete"
    PRESET_OPTIONS = "dop_presetOptions"
    SAVE_PRESET = "dopm_savePreset"
    RENAME_PRESET = "dopm_renamePreset"
    PIN_EDIT_VALIDATE = "dopm_pinEdit_Validate"
    PIN_EDIT_NEW = "dopm_pinEdit_NewPin"
    PIN_EDIT_CONFIRM = "dopm_pinEdit_ConfirmNewPin"
    OUTPUT_NAME = "dopm_outputName"

    @classmethod
    def confirm_delete_pin(cls, index: int) -> str:
        return f"{cls.PIN_CONFIRM_DELETE}~Index:{index}"

    @classmethod
    def confirm_delete_prompt(cls, index: int) -> str:
        return f"{cls.PROMPT_CONFIRM_DELETE}~Index:{index}"

    @classmethod
    def rename_preset(cls, index: int) -> str:
        return f"{cls.RENAME_PRESET}~Index:{index}"

    @classmethod
    def output_name(cls, connector: str) -> str:
        return f"{cls.OUTPUT_NAME}~Connector:{connector}"

    @classmethod
    def preset_options(cls, index: int, is_default: bool) -> str:
        return f"{cls.PRESET_OPTIONS}~Index:{index}~isDefault:{'true' if is_default else 'false'}"


def trailing_value(feedback_id: str) -> Optional[str]:
    """Value after the last colon, e.g. '3' from 'dopm_renamePreset~Index:3'."""
    if ":" not in feedback_id:
        return None
    return feedback_id.rsplit(":", 1)[1]


def parse_preset_options(feedback_id: str) -> Tuple[Optional[int], bool]:
    """Return (index, is_default) from a preset options feedback id."""
    index: Optional[int] = None
    is_default = False
    for segment in feedback_id.split("~")[1:]:
        key, _, value = segment.partition(":")
        if key == "Index":
            try:
                index = int(value)
            except ValueError:
                index = None
        elif key == "isDefault":
            is_default = value == "true"
    return index, is_default
