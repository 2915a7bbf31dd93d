import io
from unittest.mock import Mock

from rich.console import Console

from domainanalyzer.progress.config import RendererRegistry, get_renderer_registry, update_config
from domainanalyzer.progress.core import ProgressMode, ProgressRenderer, ProgressTracker, StageStatus
from domainanalyzer.progress.display import RichProgressRenderer, TqdmProgressRenderer
from domainanalyzer.progress.utils import parse_progress_mode, setup_progress_tracker

STAGES = ['Community Data Mining', 'Search Pattern Analysis', 'Intent Classification']


class RecordingRenderer(ProgressRenderer):
    """Renderer that records calls instead of drawing."""

    def __init__(self, fail_updates=False):
        self.started_with = None
        self.stopped = False
        self.updates = []
        self.summaries = []
        self.fail_updates = fail_updates

    def start(self, title=""):
        self.started_with = title

    def stop(self):
        self.stopped = True

    def update_stage(self, index, stage):
        if self.fail_updates:
            raise RuntimeError("terminal went away")
        self.updates.append((index, stage.status, stage.progress))

    def is_available(self):
        return True

    def display_completion_summary(self, stats):
        self.summaries.append(stats)


def make_tracker(mode=ProgressMode.ON, renderer=None):
    tracker = ProgressTracker(STAGES, mode=mode, title="Intent Phrases")
    tracker.set_renderer(renderer)
    return tracker


def test_start_draws_every_stage_then_forwards_updates():
    renderer = RecordingRenderer()
    with make_tracker(renderer=renderer) as tracker:
        assert renderer.started_with == "Intent Phrases"
        assert len(renderer.updates) == 3
        tracker.stages.set_stage(1, status=StageStatus.RUNNING, progress=30)

    assert renderer.updates[-1] == (1, StageStatus.RUNNING, 30)
    assert renderer.stopped


def test_updates_before_start_are_not_rendered():
    renderer = RecordingRenderer()
    tracker = make_tracker(renderer=renderer)
    tracker.stages.set_stage(0, status=StageStatus.RUNNING, progress=10)
    assert renderer.updates == []


def test_off_mode_never_renders():
    renderer = RecordingRenderer()
    with make_tracker(mode=ProgressMode.OFF, renderer=renderer) as tracker:
        tracker.stages.set_stage(0, status=StageStatus.RUNNING, progress=10)
        tracker.display_completion_summary({'results': 1})

    assert renderer.started_with is None
    assert renderer.updates == []
    assert renderer.summaries == []


def test_renderer_errors_do_not_affect_stage_state():
    tracker = make_tracker(renderer=RecordingRenderer(fail_updates=True))
    with tracker:
        tracker.stages.set_stage(0, status=StageStatus.RUNNING, progress=40)

    assert tracker.stages[0].progress == 40
    assert tracker.stages[0].status == StageStatus.RUNNING


def test_logging_manager_toggled_around_display():
    manager = Mock()
    tracker = make_tracker(renderer=RecordingRenderer())
    tracker.set_logging_manager(manager)

    with tracker:
        manager.enable_progress_mode.assert_called_once()
        manager.disable_progress_mode.assert_not_called()
    manager.disable_progress_mode.assert_called_once()


def test_logging_manager_untouched_when_off():
    manager = Mock()
    tracker = make_tracker(mode=ProgressMode.OFF)
    tracker.set_logging_manager(manager)
    with tracker:
        pass
    manager.enable_progress_mode.assert_not_called()
    manager.disable_progress_mode.assert_not_called()


def test_summary_and_status_helpers():
    tracker = make_tracker(mode=ProgressMode.OFF)
    tracker.stages.set_stage(0, status=StageStatus.COMPLETED, progress=100)
    tracker.stages.set_stage(1, status=StageStatus.FAILED, error="Rate limited")

    summary = tracker.get_summary()
    assert summary[0] == {
        'name': 'Community Data Mining', 'status': 'completed', 'progress': 100,
        'description': '', 'error': None,
    }
    assert summary[1]['error'] == "Rate limited"
    assert tracker.has_failures()
    assert not tracker.is_complete()


def test_parse_progress_mode():
    assert parse_progress_mode("ON") == ProgressMode.ON
    assert parse_progress_mode("off") == ProgressMode.OFF
    assert parse_progress_mode("sometimes") == ProgressMode.AUTO


def test_setup_progress_tracker_uses_given_renderer():
    renderer = RecordingRenderer()
    tracker = setup_progress_tracker(STAGES, "on", renderer=renderer)
    assert tracker.renderer is renderer


def test_setup_progress_tracker_off_has_no_renderer():
    tracker = setup_progress_tracker(STAGES, "off")
    assert tracker.renderer is None


def test_rich_renderer_draws_stages_and_summary():
    output = io.StringIO()
    renderer = RichProgressRenderer(console=Console(file=output, width=100, force_terminal=False))
    tracker = make_tracker(renderer=renderer)

    with tracker:
        tracker.stages.set_stage(0, status=StageStatus.COMPLETED, progress=100)
        tracker.stages.set_stage(1, status=StageStatus.RUNNING, progress=50)
        tracker.display_completion_summary({'step': 'Intent Phrases', 'results': 12})

    text = output.getvalue()
    assert "STEP COMPLETE" in text
    assert "Intent Phrases" in text
    assert tracker.stages[1].progress == 50


def test_tqdm_renderer_writes_title_and_failures():
    output = io.StringIO()
    renderer = TqdmProgressRenderer(file=output, disable_on_non_tty=False)
    tracker = make_tracker(renderer=renderer)

    with tracker:
        tracker.stages.set_stage(0, status=StageStatus.RUNNING, progress=60)
        tracker.stages.set_stage(0, status=StageStatus.FAILED, error="Crawler blocked")

    text = output.getvalue()
    assert "Intent Phrases" in text
    assert "Error in Community Data Mining: Crawler blocked" in text


def test_renderer_registry_prefers_first_available():
    registry = RendererRegistry()
    registry.register('missing', RecordingRenderer, lambda: False)
    registry.register('recording', RecordingRenderer)

    assert registry.get_renderer('recording') is RecordingRenderer
    assert registry.get_renderer('unknown') is None
    assert registry.auto_select() is RecordingRenderer


def test_renderer_registry_with_nothing_available():
    registry = RendererRegistry()
    registry.register('missing', RecordingRenderer, lambda: False)
    assert registry.auto_select() is None


def test_default_registry_prefers_rich():
    assert get_renderer_registry().get_renderer('rich') is RichProgressRenderer
    assert get_renderer_registry().get_renderer('tqdm') is TqdmProgressRenderer


def test_rich_details_follow_debounced_running_ticks():
    update_config(enable_update_debouncing=True, debounce_interval=60.0)
    output = io.StringIO()
    renderer = RichProgressRenderer(console=Console(file=output, width=140, force_terminal=False))
    tracker = make_tracker(renderer=renderer)

    with tracker:
        tracker.stages.set_stage(0, status=StageStatus.RUNNING, progress=10)
        tracker.stages.set_stage(0, progress=70, description="Reading r/saas threads")

    text = output.getvalue()
    assert "Reading r/saas threads" in text
    assert "70%" in text
