"""Touch panel workflow: widget actions, dialog and prompt responses."""

import re
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..core.exceptions import ConnectionError, DeviceCommandError, ValidationError
from ..events.action_router import ActionContext, ActionRouter, LongPressTimer, build_tree
from ..events.event_types import (
    PanelClickedEvent,
    PromptResponseEvent,
    TextInputResponseEvent,
    WidgetActionEvent
)
from ..protocol.subscriptions import Subscription
from ..ui.feedback_ids import FeedbackId, parse_preset_options, trailing_value
from ..ui.panels import MAKER_ENTRY_PANEL
from ..utils.logger import get_logger
from .models import check_text_weight, validate_pin, validate_preset_name
from .registry import coerce_index

if TYPE_CHECKING:
    from ..device.xapi import DeviceControl
    from ..ui.dialogs import DialogManager
    from ..ui.panels import PanelManager
    from .activation import ActivationEngine
    from .matrix import MatrixRouteModel
    from .registry import PresetRegistry


logger = get_logger("controller")

MONITOR_ROLE_ORDER = ["Auto", "First", "Second", "Third", "PresentationOnly", "Recorder"]
VIDEO_MONITORS_ORDER = ["Auto", "Single", "Dual", "DualPresentationOnly", "Triple", "TriplePresentationOnly"]
ROLE_SCHEMA_CONNECTOR = 2
PRINTABLE = re.compile(r"^[\x20-\x7E]+$")


def order_by_template(values: Sequence[str], template: Sequence[str]) -> List[str]:
    """Known values in template order, then unknown values as given."""
    known = sorted((v for v in values if v in template), key=template.index)
    unknown = [v for v in values if v not in template]
    return known + unknown


def step_value(values: Sequence[str], current: str, direction: str) -> str:
    """Move one step through ``values``, wrapping at either end."""
    if not values:
        return current
    position = values.index(current) if current in values else -1
    if direction == "increment":
        return values[(position + 1) % len(values)]
    if position < 0:
        return values[-1]
    return values[(position - 1) % len(values)]


class PresetController:
    """Glue between panel interactions and the preset components."""

    def __init__(
        self,
        device: "DeviceControl",
        registry: "PresetRegistry",
        matrix: "MatrixRouteModel",
        activation: "ActivationEngine",
        dialogs: "DialogManager",
        panels: "PanelManager",
        timer: Optional[LongPressTimer] = None
    ):
        self._device = device
        self._registry = registry
        self._matrix = matrix
        self._activation = activation
        self._dialogs = dialogs
        self._panels = panels
        self.timer = timer or LongPressTimer()

        self.selected_output = 1
        self.selected_input: Optional[int] = None
        self.role_values = list(MONITOR_ROLE_ORDER)
        self.monitors_values = list(VIDEO_MONITORS_ORDER)
        self._pending_pin: Optional[str] = None

        self.router = ActionRouter(
            pressed=build_tree({
                "Presets": {"Select": self.arm_preset_options},
            }),
            released=build_tree({
                "Presets": {"Select": self.select_preset},
                "Maker": {
                    "OutputSelect": self.select_output,
                    "MonitorRole": self.cycle_monitor_role,
                    "Matrix": {
                        "SourceSelect": self.select_source,
                        "Add": self.add_route,
                        "Reset": self.reset_route,
                    },
                    "PresetSave": self.prompt_save,
                },
                "Config": {
                    "MonitorsConfig": {"Select": self.cycle_monitors},
                    "DisplayName": {
                        "Edit": self.edit_output_name,
                        "Help": self.output_name_help,
                    },
                    "PinProtection": {
                        "Mode": self.set_pin_mode,
                        "Edit": self.edit_pin,
                    },
                },
            })
        )

    def subscription_handlers(self):
        """Handlers for the UI feedback this controller consumes."""
        return {
            Subscription.PANEL_CLICKED: self.handle_panel_clicked,
            Subscription.PROMPT_RESPONSE: self.handle_prompt_response,
            Subscription.TEXT_INPUT_RESPONSE: self.handle_text_input_response,
            Subscription.WIDGET_ACTION: self.handle_widget_action,
        }

    async def load_value_spaces(self) -> None:
        """Read the device's allowed roles and monitor modes."""
        try:
            values = await self._device.value_space(["Configuration", "Video", "Monitors"])
            if values:
                self.monitors_values = order_by_template(values, VIDEO_MONITORS_ORDER)
        except (DeviceCommandError, ConnectionError) as e:
            logger.warning(f"Failed to fetch Video Monitors configuration: {e}")

        try:
            values = await self._device.value_space(
                ["Configuration", "Video", "Output", "Connector", ROLE_SCHEMA_CONNECTOR, "MonitorRole"]
            )
            if values:
                self.role_values = order_by_template(values, MONITOR_ROLE_ORDER)
        except (DeviceCommandError, ConnectionError) as e:
            logger.warning(f"Failed to fetch Monitor Role {ROLE_SCHEMA_CONNECTOR} configuration: {e}")

    # Feedback

    async def refresh_maker_feedback(self) -> None:
        try:
            await self._panels.update_monitor_role(await self._device.get_monitor_role(self.selected_output))
            await self._panels.update_monitors(await self._device.get_monitors())
        except (DeviceCommandError, ConnectionError) as e:
            logger.warning(f"Failed to read maker state: {e}")
        await self._panels.update_route_order(self._matrix.describe(self.selected_output))

    async def open_maker(self, peripheral_id: Optional[str] = None) -> None:
        await self._panels.open_maker(peripheral_id)
        self.selected_output = 1
        await self.refresh_maker_feedback()
        await self._panels.update_pin_mode()

    async def clear_source_selection(self) -> None:
        self.selected_input = None
        await self._panels.clear_source_selection()
        logger.debug("Maker Input deselected")

    # Event entry points

    async def handle_widget_action(self, event: WidgetActionEvent) -> None:
        await self.router.dispatch(event)

    async def handle_panel_clicked(self, event: PanelClickedEvent) -> None:
        if event.panel_id != MAKER_ENTRY_PANEL:
            return
        if self._registry.config.pin_protection.enabled:
            await self._dialogs.pin_entry(FeedbackId.PIN_MAKER_ACCESS, peripheral_id=event.peripheral_id)
        else:
            await self.open_maker(event.peripheral_id)

    async def handle_text_input_response(self, event: TextInputResponseEvent) -> None:
        feedback_id = event.feedback_id
        text = event.text
        peripheral_id = event.peripheral_id

        if feedback_id.startswith(FeedbackId.RENAME_PRESET):
            await self._submit_rename(trailing_value(feedback_id), text, peripheral_id)
        elif feedback_id.startswith(FeedbackId.PIN_CONFIRM_DELETE):
            await self._submit_delete_pin(feedback_id, text, peripheral_id)
        elif feedback_id.startswith(FeedbackId.OUTPUT_NAME):
            await self._submit_output_name(trailing_value(feedback_id), text, peripheral_id)
        elif feedback_id == FeedbackId.PIN_MAKER_ACCESS:
            if self._pin_matches(text):
                await self.open_maker(peripheral_id)
            else:
                await self._dialogs.pin_entry(FeedbackId.PIN_MAKER_ACCESS, is_error=True, peripheral_id=peripheral_id)
        elif feedback_id == FeedbackId.SAVE_PRESET:
            await self._submit_save(text, peripheral_id)
        elif feedback_id in (FeedbackId.PIN_EDIT_VALIDATE, FeedbackId.PIN_EDIT_NEW, FeedbackId.PIN_EDIT_CONFIRM):
            await self._submit_pin_edit(feedback_id, text, peripheral_id)

    async def handle_prompt_response(self, event: PromptResponseEvent) -> None:
        feedback_id = event.feedback_id

        if feedback_id.startswith(FeedbackId.PRESET_OPTIONS):
            index, is_default = parse_preset_options(feedback_id)
            if index is None:
                return
            if event.option_id == 1:
                await self._dialogs.rename_preset(index, peripheral_id=event.peripheral_id)
            elif event.option_id == 2:
                await self._registry.set_default(index, remove=is_default)
            elif event.option_id == 3:
                await self.prompt_remove(index, event.peripheral_id)
        elif feedback_id.startswith(FeedbackId.PROMPT_CONFIRM_DELETE) and event.option_id == 1:
            await self._registry.remove(trailing_value(feedback_id))

    async def prompt_remove(self, index: int, peripheral_id: Optional[str] = None) -> None:
        if self._registry.config.pin_protection.enabled:
            await self._dialogs.pin_entry(
                FeedbackId.confirm_delete_pin(index),
                preset_index=index,
                peripheral_id=peripheral_id
            )
        else:
            await self._dialogs.confirm_remove(index, peripheral_id)

    # Dialog submissions

    def _pin_matches(self, text: str) -> bool:
        try:
            validate_pin(text)
        except ValidationError as e:
            logger.debug(f"Pin Entry Error || Cause: {e}")
            return False
        if text != self._registry.config.pin_protection.pin:
            logger.debug("Pin Entry Error || Cause: Pin Entry Mismatch Check")
            return False
        return True

    async def _submit_save(self, text: str, peripheral_id: Optional[str]) -> None:
        try:
            name = validate_preset_name(text)
        except ValidationError as e:
            logger.debug(f"New Monitor Preset Error || Cause: {e}")
            await self._dialogs.save_preset(is_error=True, peripheral_id=peripheral_id)
            return
        await self._registry.save(name)

    async def _submit_rename(self, index: Optional[str], text: str, peripheral_id: Optional[str]) -> None:
        entry = self._registry.resolve(index)
        if entry is None:
            logger.warning(f"Monitor Preset index [{index}] does not exist, unable to rename")
            return
        if entry.name == text:
            logger.debug("New Preset name matches existing, no need to update")
            return
        try:
            name = validate_preset_name(text)
        except ValidationError as e:
            logger.debug(f"Rename Monitor Preset Error || Cause: {e}")
            await self._dialogs.rename_preset(coerce_index(index), is_error=True, redo_name=text, peripheral_id=peripheral_id)
            return
        await self._registry.rename(index, name)

    async def _submit_delete_pin(self, feedback_id: str, text: str, peripheral_id: Optional[str]) -> None:
        index = coerce_index(trailing_value(feedback_id))
        if not self._pin_matches(text):
            await self._dialogs.pin_entry(feedback_id, is_error=True, preset_index=index, peripheral_id=peripheral_id)
            return
        await self._registry.remove(index)

    async def _submit_output_name(self, connector: Optional[str], text: str, peripheral_id: Optional[str]) -> None:
        if connector is None:
            return
        fits, weight = check_text_weight(text)
        if not text or not fits or not PRINTABLE.match(text):
            logger.warning(f"Character weight for {text} greater than maximum [{weight}]")
            await self._dialogs.output_name(
                connector,
                is_error=True,
                weight=weight,
                redo_name=text,
                peripheral_id=peripheral_id
            )
            return
        await self._registry.set_output_name(connector, text)
        await self._panels.rebuild_maker()

    async def _submit_pin_edit(self, feedback_id: str, text: str, peripheral_id: Optional[str]) -> None:
        if feedback_id == FeedbackId.PIN_EDIT_VALIDATE:
            if not self._pin_matches(text):
                await self._dialogs.pin_edit(feedback_id, is_error=True, peripheral_id=peripheral_id)
                return
            await self._dialogs.pin_edit(FeedbackId.PIN_EDIT_NEW, peripheral_id=peripheral_id)

        elif feedback_id == FeedbackId.PIN_EDIT_NEW:
            try:
                self._pending_pin = validate_pin(text)
            except ValidationError:
                await self._dialogs.pin_edit(feedback_id, is_error=True, peripheral_id=peripheral_id)
                return
            await self._dialogs.pin_edit(FeedbackId.PIN_EDIT_CONFIRM, peripheral_id=peripheral_id)

        elif feedback_id == FeedbackId.PIN_EDIT_CONFIRM:
            if self._pending_pin is None or text != self._pending_pin:
                await self._dialogs.pin_edit(feedback_id, is_error=True, peripheral_id=peripheral_id)
                return
            self._pending_pin = None
            await self._registry.set_pin(text)
            await self._panels.rebuild_maker()
            await self._dialogs.pin_saved(peripheral_id)

    # Pressed handlers

    @staticmethod
    def preset_index(context: ActionContext) -> Optional[int]:
        """Single presets carry the index in the data segment, groups in the value."""
        if context.sub_action == "Single":
            raw = (context.data or "").split(":")[0]
        else:
            raw = (context.value or "").split("~")[0]
        return coerce_index(raw)

    async def arm_preset_options(self, context: ActionContext) -> None:
        index = self.preset_index(context)
        if self._registry.resolve(index) is None:
            logger.warning(f"Monitor Preset index [{index}] does not exist, no options to show")
            return

        async def open_options():
            await self._dialogs.preset_options(
                index,
                self._registry.is_default(index),
                peripheral_id=context.peripheral_id
            )

        self.timer.arm(open_options)

    # Released handlers

    async def select_preset(self, context: ActionContext) -> None:
        if not self.timer.release():
            return
        await self._activation.activate(self.preset_index(context))

    async def select_output(self, context: ActionContext) -> None:
        output = coerce_index(context.value)
        if output is None:
            return
        self.selected_output = output
        logger.info(f"Maker Output set to [{output}]")
        await self.refresh_maker_feedback()

    async def cycle_monitor_role(self, context: ActionContext) -> None:
        try:
            current = await self._device.get_monitor_role(self.selected_output)
            role = step_value(self.role_values, current, context.value)
            await self._device.set_monitor_role(self.selected_output, role)
        except (DeviceCommandError, ConnectionError) as e:
            logger.error(f"Failed to change Monitor Role on Output Connector [{self.selected_output}]: {e}")
            return
        logger.info(f"Output Connector [{self.selected_output}] Monitor Role set to [{role}]")
        await self._panels.update_monitor_role(role)

    async def cycle_monitors(self, context: ActionContext) -> None:
        try:
            current = await self._device.get_monitors()
            mode = step_value(self.monitors_values, current, context.value)
            await self._device.set_monitors(mode)
        except (DeviceCommandError, ConnectionError) as e:
            logger.error(f"Failed to change Video Monitors: {e}")
            return
        logger.info(f"Video Monitors set to [{mode}]")
        await self._panels.update_monitors(mode)

    async def select_source(self, context: ActionContext) -> None:
        self.selected_input = coerce_index(context.value)
        logger.info(f"Maker Input selected [{self.selected_input}]")

    async def add_route(self, context: ActionContext) -> None:
        if self.selected_input is None:
            await self._dialogs.select_source_first(context.peripheral_id)
            await self.clear_source_selection()
            return
        await self._matrix.add_source(self.selected_output, self.selected_input)
        await self._panels.update_route_order(self._matrix.describe(self.selected_output))
        await self.clear_source_selection()

    async def reset_route(self, context: ActionContext) -> None:
        await self._matrix.clear_route(self.selected_output)
        await self._panels.update_route_order(self._matrix.describe(self.selected_output))
        await self.clear_source_selection()

    async def prompt_save(self, context: ActionContext) -> None:
        await self._dialogs.save_preset(peripheral_id=context.peripheral_id)

    async def edit_output_name(self, context: ActionContext) -> None:
        if context.data:
            await self._dialogs.output_name(context.data, peripheral_id=context.peripheral_id)

    async def output_name_help(self, context: ActionContext) -> None:
        await self._dialogs.output_name_help(context.peripheral_id)

    async def set_pin_mode(self, context: ActionContext) -> None:
        try:
            await self._registry.set_pin_mode(context.value)
        except ValueError:
            logger.warning(f"Unknown pin protection mode [{context.value}]")

    async def edit_pin(self, context: ActionContext) -> None:
        await self._dialogs.pin_edit(FeedbackId.PIN_EDIT_VALIDATE, peripheral_id=context.peripheral_id)
