"""
Retouch wizard state machine.

Drives one user through upload -> retouch -> harmonize -> done. Remote
calls go through an AIAdapter; every failure ends up as error text on the
wizard, never as an exception to the caller.

Each action kind carries a request epoch. reset() and select_image()
advance every epoch, and a step change advances the epochs of actions
that do not belong to the new step. A response whose epoch is no longer
current is dropped instead of overwriting newer state. Only one request
per kind may be in flight; different kinds may overlap.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from studio.ai.adapter import AIAdapter
from studio.core.config import settings
from studio.core.errors import ActionInProgress, InvalidTransition, StudioError, ValidationError
from studio.core.image_utils import is_light_color, parse_data_uri, validate_upload
from studio.core.messages import message
from studio.core.previews import PreviewRegistry, preview_registry
from studio.models import (
    ActionKind,
    ColorPalette,
    ColorView,
    ExtractedColor,
    RetouchParameters,
    WizardStateResponse,
    WizardStep,
)

logger = logging.getLogger(__name__)

# Actions whose responses may still be applied in each step
STEP_ACTIONS = {
    WizardStep.RETOUCH: {ActionKind.ENHANCE, ActionKind.SUGGEST},
    WizardStep.HARMONIZE: {ActionKind.EXTRACT, ActionKind.TRANSFER},
}


@dataclass(eq=False)
class HeldImage:
    """Uploaded bytes plus the preview handle that exposes them."""
    raw_bytes: bytes
    mime_type: str
    preview_handle: str
    registry: PreviewRegistry
    released: bool = False

    @classmethod
    def acquire(cls, raw_bytes: bytes, mime_type: str, registry: PreviewRegistry, **kwargs):
        handle = registry.create(raw_bytes, mime_type)
        return cls(
            raw_bytes=raw_bytes,
            mime_type=mime_type,
            preview_handle=handle,
            registry=registry,
            **kwargs,
        )

    def release(self) -> None:
        """Release the preview handle; later calls are no-ops."""
        if self.released:
            return
        self.released = True
        self.registry.release(self.preview_handle)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


@dataclass(eq=False)
class WorkingImage(HeldImage):
    """The photo being retouched, with the remote results for each stage."""
    enhanced_result: Optional[str] = None
    final_result: Optional[str] = None


def _color_view(color: ExtractedColor) -> ColorView:
    return ColorView(
        hex=color.hex,
        name=color.name,
        semantic=color.semantic,
        is_light=is_light_color(color.hex),
    )


class RetouchWizard:
    """State machine for one wizard run."""

    def __init__(
        self,
        adapter: AIAdapter,
        registry: Optional[PreviewRegistry] = None,
        session_id: str = "",
    ):
        self.adapter = adapter
        self.registry = registry if registry is not None else preview_registry
        self.session_id = session_id

        self.step = WizardStep.UPLOAD
        self.image: Optional[WorkingImage] = None
        self.parameters = RetouchParameters()
        self.reference: Optional[HeldImage] = None
        self.palette: Optional[ColorPalette] = None
        self.selection: dict[str, ExtractedColor] = {}
        self.error: Optional[str] = None

        self._epochs: dict[ActionKind, int] = {kind: 0 for kind in ActionKind}
        self._in_flight: dict[ActionKind, int] = {}

    # === Bookkeeping ===

    @property
    def busy(self) -> Optional[ActionKind]:
        """Most recently started action still in flight."""
        if not self._in_flight:
            return None
        return list(self._in_flight)[-1]

    def is_pending(self, kind: ActionKind) -> bool:
        return kind in self._in_flight

    def _require_step(self, action: str, *steps: WizardStep) -> None:
        if self.step not in steps:
            raise InvalidTransition(f"{action} is not valid in step '{self.step.value}'")

    def _set_step(self, step: WizardStep) -> None:
        logger.info(f"[{self.session_id}] Step {self.step.value} -> {step.value}")
        self.step = step
        self._invalidate_pending(*(set(ActionKind) - STEP_ACTIONS.get(step, set())))

    def _ensure_idle(self, kind: ActionKind) -> None:
        if self.is_pending(kind):
            raise ActionInProgress(f"A {kind.value} request is already in progress")

    def _begin(self, kind: ActionKind) -> int:
        self._ensure_idle(kind)
        self._epochs[kind] += 1
        epoch = self._epochs[kind]
        self._in_flight[kind] = epoch
        return epoch

    def _finish(self, kind: ActionKind, epoch: int) -> bool:
        """Close a request; True if its result may still be applied."""
        if self._epochs[kind] != epoch:
            logger.warning(f"[{self.session_id}] Discarding stale {kind.value} response")
            return False
        self._in_flight.pop(kind, None)
        return True

    def _invalidate_pending(self, *kinds: ActionKind) -> None:
        """Make pending responses of the given kinds (default: all) stale."""
        for kind in kinds or tuple(ActionKind):
            self._epochs[kind] += 1
            self._in_flight.pop(kind, None)

    async def _dispatch(self, kind: ActionKind, call: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run one remote call under the epoch guard.

        Returns:
            The call's result, or None when it failed or went stale
        """
        epoch = self._begin(kind)
        self.error = None
        try:
            result = await call()
        except StudioError as e:
            if self._finish(kind, epoch):
                self.error = str(e)
            return None
        except BaseException:
            self._finish(kind, epoch)
            raise
        if not self._finish(kind, epoch):
            return None
        return result

    def _release_images(self) -> None:
        if self.image is not None:
            self.image.release()
            self.image = None
        if self.reference is not None:
            self.reference.release()
            self.reference = None

    # === Transitions ===

    def select_image(self, raw_bytes: bytes, content_type: Optional[str]) -> bool:
        """
        Store the photo to retouch and move to the retouch step.

        Returns:
            False when the file is rejected; the error text says why and
            no state changes
        """
        self._require_step("select_image", WizardStep.UPLOAD)
        try:
            mime_type = validate_upload(raw_bytes, content_type)
        except ValidationError as e:
            self.error = str(e)
            return False

        image = WorkingImage.acquire(raw_bytes, mime_type, self.registry)
        self._release_images()
        self._invalidate_pending()
        self.palette = None
        self.selection = {}
        self.image = image
        self.error = None
        logger.info(f"[{self.session_id}] Selected image ({mime_type}, {len(raw_bytes)} bytes)")
        self._set_step(WizardStep.RETOUCH)
        return True

    def update_parameters(self, parameters: RetouchParameters) -> None:
        """Replace the retouch parameters; in-flight requests keep their copy."""
        self._require_step("update_parameters", WizardStep.RETOUCH)
        self.parameters = parameters

    async def run_retouch(self) -> None:
        """Apply dodge & burn and move to the harmonize step on success."""
        self._require_step("run_retouch", WizardStep.RETOUCH)
        image = self.image
        if image is None:
            self.error = message("no_image")
            return

        self._ensure_idle(ActionKind.ENHANCE)
        params = self.parameters
        image.enhanced_result = None
        image.final_result = None
        result = await self._dispatch(
            ActionKind.ENHANCE,
            lambda: self.adapter.enhance(image.raw_bytes, image.mime_type, params),
        )
        if result is None:
            return

        image.enhanced_result = result
        self._set_step(WizardStep.HARMONIZE)

    async def run_suggest(self) -> None:
        """Overwrite dodge/burn with the model's suggestion; the step is unchanged."""
        self._require_step("run_suggest", WizardStep.RETOUCH)
        image = self.image
        if image is None:
            self.error = message("no_image")
            return

        guidance = self.parameters.creative_guidance
        suggestion = await self._dispatch(
            ActionKind.SUGGEST,
            lambda: self.adapter.suggest(image.raw_bytes, image.mime_type, guidance),
        )
        if suggestion is None:
            return

        self.parameters = self.parameters.model_copy(
            update={"dodge": suggestion.dodge, "burn": suggestion.burn}
        )
        logger.info(f"[{self.session_id}] Suggested dodge={suggestion.dodge}, burn={suggestion.burn}")

    def select_reference_image(self, raw_bytes: bytes, content_type: Optional[str]) -> bool:
        """
        Store the reference image for palette extraction.

        Returns:
            False when the file is rejected; the error text says why
        """
        self._require_step("select_reference_image", WizardStep.HARMONIZE)
        try:
            mime_type = validate_upload(raw_bytes, content_type)
        except ValidationError as e:
            self.error = str(e)
            return False

        reference = HeldImage.acquire(raw_bytes, mime_type, self.registry)
        if self.reference is not None:
            self.reference.release()
        self.reference = reference
        self.error = None
        return True

    async def run_extract(
        self,
        count: Optional[int] = None,
        raw_bytes: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Extract a palette from the reference image.

        When bytes are given they become the new reference image first.
        The selection is cleared as soon as extraction starts; the palette
        is replaced wholesale on success.
        """
        self._require_step("run_extract", WizardStep.HARMONIZE)
        if count is None:
            count = settings.DEFAULT_PALETTE_SIZE
        if not settings.MIN_PALETTE_SIZE <= count <= settings.MAX_PALETTE_SIZE:
            self.error = message(
                "palette_size", low=settings.MIN_PALETTE_SIZE, high=settings.MAX_PALETTE_SIZE
            )
            return

        self._ensure_idle(ActionKind.EXTRACT)
        if raw_bytes is not None and not self.select_reference_image(raw_bytes, content_type):
            return
        reference = self.reference
        if reference is None:
            self.error = message("no_image")
            return

        self.palette = None
        self.selection = {}
        palette = await self._dispatch(
            ActionKind.EXTRACT,
            lambda: self.adapter.extract_palette(reference.raw_bytes, reference.mime_type, count),
        )
        if palette is None:
            return

        self.palette = palette
        self.selection = {}
        logger.info(f"[{self.session_id}] Extracted {len(palette.colors)} colors")

    def toggle_color_selection(self, color: Union[ExtractedColor, str]) -> bool:
        """
        Add a color to the selection, or remove it if its hex is already there.

        Colors are identified by hex only. A bare hex string is looked up in
        the current palette.

        Returns:
            True if the color is selected after the call
        """
        self._require_step("toggle_color_selection", WizardStep.HARMONIZE)
        hex_value = color.hex if isinstance(color, ExtractedColor) else color
        if hex_value in self.selection:
            del self.selection[hex_value]
            return False

        if isinstance(color, ExtractedColor):
            self.selection[hex_value] = color
            return True

        colors = self.palette.colors if self.palette else []
        for candidate in colors:
            if candidate.hex == hex_value:
                self.selection[hex_value] = candidate
                return True
        raise InvalidTransition(f"Color {hex_value} is not in the current palette")

    async def run_transfer(self) -> None:
        """Harmonize the enhanced image toward the selection and finish."""
        self._require_step("run_transfer", WizardStep.HARMONIZE)
        image = self.image
        if image is None or not image.enhanced_result or not self.selection:
            self.error = message("nothing_to_transfer")
            return

        try:
            enhanced_bytes, enhanced_mime = parse_data_uri(image.enhanced_result)
        except StudioError as e:
            self.error = str(e)
            return

        colors = list(self.selection.values())
        result = await self._dispatch(
            ActionKind.TRANSFER,
            lambda: self.adapter.transfer_colors(enhanced_bytes, enhanced_mime, colors),
        )
        if result is None:
            return

        image.final_result = result
        self._set_step(WizardStep.DONE)

    def dismiss_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        """Return to the upload step and drop all derived state."""
        self._release_images()
        self._invalidate_pending()
        self.parameters = RetouchParameters()
        self.palette = None
        self.selection = {}
        self.error = None
        if self.step != WizardStep.UPLOAD:
            self._set_step(WizardStep.UPLOAD)

    # === Views ===

    def snapshot(self) -> WizardStateResponse:
        image = self.image
        reference = self.reference
        return WizardStateResponse(
            session_id=self.session_id,
            step=self.step,
            busy=self.busy,
            error=self.error,
            parameters=self.parameters,
            original_preview_url=f"/api/previews/{image.preview_handle}" if image else None,
            enhanced_result=image.enhanced_result if image else None,
            final_result=image.final_result if image else None,
            reference_preview_url=(
                f"/api/previews/{reference.preview_handle}" if reference else None
            ),
            palette=[_color_view(c) for c in self.palette.colors] if self.palette else None,
            selected_colors=[_color_view(c) for c in self.selection.values()],
        )
