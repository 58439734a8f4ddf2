"""End-to-end tests for the tracker context."""
import pytest

from helpers import PALETTE, at, frame_with_cells, legend_image, row_of_ranks
from radartrack.config import TrackerConfig
from radartrack.errors import ImageLoadFailed, NoColorsFound
from radartrack.imaging import DecodedImage
from radartrack.legend import ColorTable
from radartrack.projection import PlanarProjection
from radartrack.tracker import PLACEHOLDER, RadarTracker

TARGET = PALETTE[3]


class Sink:
    def __init__(self):
        self.texts = []

    def __call__(self, text):
        self.texts.append(text)


@pytest.fixture
def sink():
    return Sink()


@pytest.fixture
def tracker(sink):
    t = RadarTracker(PlanarProjection(5.0, 200, 200), sink=sink)
    t.set_legend(ColorTable(PALETTE))
    return t


@pytest.fixture
def centroid_tracker(sink):
    t = RadarTracker(PlanarProjection(5.0, 100, 100),
                     config=TrackerConfig(mode='single-color-centroid'), sink=sink)
    t.set_legend(ColorTable(PALETTE))
    t.set_target_color(TARGET)
    return t


class TestWholeField:
    def test_speed_from_shift(self, tracker, sink):
        assert tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0)) is None
        result = tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 3)), at(300))
        assert result.motion.vector_count == 12
        assert result.speed.speed_kmh == pytest.approx(0.6)
        assert result.text == '~ 0.6 km/h'
        assert sink.texts == ['~ 0.6 km/h']
        assert tracker.results == '~ 0.6 km/h'

    def test_duplicate_timestamp_skipped(self, tracker, sink):
        tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0))
        assert tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 3)), '2024-05-01T12:00:00Z') is None
        assert len(tracker.history) == 2
        assert sink.texts == []
        assert tracker.results == PLACEHOLDER

    def test_too_few_vectors(self, tracker, sink):
        cells = row_of_ranks(5, 2, PALETTE[:5])
        tracker.analyze_frame(frame_with_cells(cells), at(0))
        moved = row_of_ranks(5, 3, PALETTE[:5])
        result = tracker.analyze_frame(frame_with_cells(moved), at(300))
        assert result.speed is None
        assert sink.texts == ['ambiguous motion']

    def test_stationary(self, tracker, sink):
        frame = frame_with_cells(row_of_ranks(5, 2))
        tracker.analyze_frame(frame, at(0))
        result = tracker.analyze_frame(frame, at(300))
        assert result.speed.status == 'stationary'
        assert sink.texts == ['stationary']

    def test_out_of_order_is_silent(self, tracker, sink):
        tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(300))
        assert tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 3)), at(0)) is None
        assert sink.texts == []

    def test_history_is_bounded(self, tracker):
        frame = frame_with_cells(row_of_ranks(5, 2))
        for i in range(15):
            tracker.analyze_frame(frame, at(i * 60))
        assert len(tracker.history) == 10
        assert tracker.history.last.timestamp == at(14 * 60)

    def test_size_change_is_ambiguous(self, tracker, sink):
        tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0))
        tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2), cols=15), at(300))
        assert sink.texts == ['ambiguous motion']


class TestCentroid:
    def test_speed_scenario(self, centroid_tracker, sink):
        first = frame_with_cells({(5, 5): TARGET}, rows=10, cols=10)
        second = frame_with_cells({(5, 6): TARGET}, rows=10, cols=10)
        centroid_tracker.analyze_frame(first, at(0))
        result = centroid_tracker.analyze_frame(second, at(300))
        assert (result.motion.vector.dx_cells, result.motion.vector.dy_cells) == (1.0, 0.0)
        assert result.text == '~ 0.6 km/h'

    def test_other_colors_do_not_count(self, centroid_tracker, sink):
        first = frame_with_cells({(5, 5): TARGET}, rows=10, cols=10)
        second = frame_with_cells({(5, 5): PALETTE[4], (5, 7): TARGET}, rows=10, cols=10)
        centroid_tracker.analyze_frame(first, at(0))
        result = centroid_tracker.analyze_frame(second, at(300))
        assert result.motion.vector.dx_cells == 2.0

    def test_no_target_at_reference(self, centroid_tracker, sink):
        first = frame_with_cells({(1, 1): TARGET}, rows=10, cols=10)
        centroid_tracker.analyze_frame(first, at(0))
        centroid_tracker.analyze_frame(first, at(300))
        assert sink.texts == ['no target at reference']

    def test_target_gone(self, centroid_tracker, sink):
        centroid_tracker.analyze_frame(frame_with_cells({(5, 5): TARGET}, rows=10, cols=10), at(0))
        centroid_tracker.analyze_frame(frame_with_cells({}, rows=10, cols=10), at(300))
        assert sink.texts == ['ambiguous motion']

    def test_zero_displacement(self, centroid_tracker, sink):
        frame = frame_with_cells({(5, 5): TARGET}, rows=10, cols=10)
        centroid_tracker.analyze_frame(frame, at(0))
        centroid_tracker.analyze_frame(frame, at(300))
        assert sink.texts == ['stationary']

    def test_target_without_legend(self, sink):
        t = RadarTracker(PlanarProjection(5.0, 100, 100),
                         config=TrackerConfig(mode='single-color-centroid'), sink=sink)
        t.set_target_color(TARGET)
        assert t.ready
        t.analyze_frame(frame_with_cells({(5, 5): TARGET}, rows=10, cols=10), at(0))
        t.analyze_frame(frame_with_cells({(6, 5): TARGET}, rows=10, cols=10), at(300))
        assert sink.texts == ['~ 0.6 km/h']


class TestState:
    def test_no_legend_drops_frames(self, sink):
        t = RadarTracker(PlanarProjection(5.0, 200, 200), sink=sink)
        assert not t.ready
        assert t.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0)) is None
        assert len(t.history) == 0

    def test_centroid_needs_target(self, tracker):
        tracker.set_mode('single-color-centroid')
        assert not tracker.ready
        assert tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0)) is None
        tracker.set_target_color(TARGET)
        assert tracker.ready

    def test_target_outside_legend(self, tracker):
        tracker.set_mode('single-color-centroid')
        tracker.set_target_color('#fefefe')
        assert not tracker.ready

    def test_disable_resets(self, tracker, sink):
        frame = frame_with_cells(row_of_ranks(5, 2))
        tracker.analyze_frame(frame, at(0))
        tracker.analyze_frame(frame, at(300))
        tracker.set_analysis_enabled(False)
        assert len(tracker.history) == 0
        assert tracker.results == PLACEHOLDER
        assert tracker.analyze_frame(frame, at(600)) is None
        tracker.set_analysis_enabled(True)
        tracker.analyze_frame(frame, at(900))
        assert len(tracker.history) == 1

    def test_changes_clear_history(self, tracker):
        frame = frame_with_cells(row_of_ranks(5, 2))
        tracker.analyze_frame(frame, at(0))
        tracker.set_target_color(TARGET)
        assert len(tracker.history) == 0
        tracker.analyze_frame(frame, at(0))
        tracker.set_mode('whole-field-average')
        assert len(tracker.history) == 1
        tracker.update_config(cell_size=5)
        assert len(tracker.history) == 0

    def test_update_config_capacity(self, tracker):
        frame = frame_with_cells(row_of_ranks(5, 2))
        for i in range(6):
            tracker.analyze_frame(frame, at(i))
        tracker.update_config(history_capacity=3)
        assert len(tracker.history) == 3
        assert tracker.history.capacity == 3

    def test_update_config_invalid_keeps_config(self, tracker):
        with pytest.raises(ValueError):
            tracker.update_config(cell_size=0)
        assert tracker.config.cell_size == 10


class TestLegendLoading:
    def test_parse_legend_replaces_table(self, sink):
        images = {'legend.png': legend_image([(10, (0, 0, 255)), (50, (0, 255, 0))])}
        t = RadarTracker(PlanarProjection(5.0, 100, 100), sink=sink, loader=images.__getitem__)
        table = t.parse_legend('legend.png')
        assert t.color_table is table
        assert table.to_hex_dict() == {'#0000ff': 1, '#00ff00': 2}

    def test_no_colors_empties_table(self, tracker):
        empty = DecodedImage(legend_image([]).pixels)
        with pytest.raises(NoColorsFound):
            tracker.parse_legend(empty)
        assert len(tracker.color_table) == 0
        assert not tracker.ready

    def test_no_colors_with_target_in_field_mode(self, tracker, sink):
        tracker.set_target_color(TARGET)
        with pytest.raises(NoColorsFound):
            tracker.parse_legend(DecodedImage(legend_image([]).pixels))
        assert not tracker.ready
        assert tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0)) is None
        assert len(tracker.history) == 0
        assert sink.texts == []

    def test_mode_switch_drops_target_only_table(self, sink):
        t = RadarTracker(PlanarProjection(5.0, 100, 100),
                         config=TrackerConfig(mode='single-color-centroid'), sink=sink)
        t.set_target_color(TARGET)
        assert t.ready
        t.set_mode('whole-field-average')
        assert not t.ready
        t.set_mode('single-color-centroid')
        assert t.ready

    def test_load_failure_keeps_table(self, tracker):
        def failing(source):
            raise ImageLoadFailed(source, 'offline')
        tracker.loader = failing
        tracker.analyze_frame(frame_with_cells(row_of_ranks(5, 2)), at(0))
        with pytest.raises(ImageLoadFailed):
            tracker.parse_legend('http://tiles.example/legend.png')
        assert len(tracker.color_table) == len(PALETTE)
        assert len(tracker.history) == 1

    def test_analyze_source_uses_loader(self, tracker, sink):
        frames = {
            'a.png': frame_with_cells(row_of_ranks(5, 2)),
            'b.png': frame_with_cells(row_of_ranks(5, 3)),
        }
        tracker.loader = frames.__getitem__
        tracker.analyze_source('a.png', '2024-05-01T12:00:00Z')
        result = tracker.analyze_source('b.png', '2024-05-01T12:05:00Z')
        assert result.text == '~ 0.6 km/h'
