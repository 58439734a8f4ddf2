import argparse
import logging
import sys

from radartrack.config import MODE_CENTROID, MODES, TrackerConfig, load_config
from radartrack.errors import ImageLoadFailed, NoColorsFound
from radartrack.history import to_datetime
from radartrack.imaging import load_image
from radartrack.projection import PlanarProjection, WebMercatorProjection
from radartrack.tracker import RadarTracker

logger = logging.getLogger(__name__)


def parse_frame_arg(arg, index, interval):
    """Split 'path@timestamp'. Without a timestamp the frame gets index * interval seconds."""
    path, sep, stamp = arg.rpartition('@')
    if sep and path:
        try:
            return path, to_datetime(stamp)
        except ValueError:
            pass
    if interval is None:
        raise ValueError(f'Frame {arg!r} has no @timestamp; pass --interval to number frames.')
    return arg, float(index * interval)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='radartrack',
        description='Estimate precipitation speed from successive radar frames')
    parser.add_argument('frames', nargs='+', help='Frame image path or URL, optionally suffixed with @ISO-timestamp')
    parser.add_argument('--legend', required=True, help='Legend image path or URL')
    parser.add_argument('--config', default=None, help='JSON file with tracker options')
    parser.add_argument('--mode', choices=MODES, default=None, help='Tracking strategy')
    parser.add_argument('--cell-size', type=int, default=None, help='Grid cell size in pixels')
    parser.add_argument('--tolerance', type=float, default=None, help='Max RGB distance to a legend color')
    parser.add_argument('--target', default=None, help='Tracked color (#rrggbb) for single-color-centroid mode')
    parser.add_argument('--meters-per-pixel', type=float, default=None, help='Flat calibration instead of a map viewport')
    parser.add_argument('--lat', type=float, default=None, help='Viewport center latitude')
    parser.add_argument('--lon', type=float, default=None, help='Viewport center longitude')
    parser.add_argument('--zoom', type=float, default=None, help='Viewport zoom level')
    parser.add_argument('--interval', type=float, default=None, help='Seconds between frames without @timestamp')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    return parser


def _build_config(args):
    config = load_config(args.config) if args.config else TrackerConfig()
    changes = {}
    if args.mode is not None:
        changes['mode'] = args.mode
    if args.cell_size is not None:
        changes['cell_size'] = args.cell_size
    if args.tolerance is not None:
        changes['match_tolerance'] = args.tolerance
    return config.replace(**changes) if changes else config


def _check_projection_args(args):
    if args.meters_per_pixel is None and (args.lat is None or args.lon is None or args.zoom is None):
        raise ValueError('Pass --meters-per-pixel or all of --lat, --lon and --zoom.')


def _build_projection(args, width, height):
    _check_projection_args(args)
    if args.meters_per_pixel is not None:
        return PlanarProjection(args.meters_per_pixel, width, height)
    return WebMercatorProjection((args.lat, args.lon), args.zoom, width, height)


def run(args):
    config = _build_config(args)
    frames = [parse_frame_arg(f, i, args.interval) for i, f in enumerate(args.frames)]
    _check_projection_args(args)

    # Projection is built once the first frame loads and fixes the viewport size
    tracker = RadarTracker(None, config=config)
    try:
        table = tracker.parse_legend(args.legend)
    except (ImageLoadFailed, NoColorsFound) as e:
        print('Legend error:', e)
        return 1
    print(f'Legend: {len(table)} colors')
    if args.target:
        if config.mode != MODE_CENTROID:
            logger.warning('--target %s is ignored in %s mode', args.target, config.mode)
        tracker.set_target_color(args.target)

    loaded = 0
    for source, stamp in frames:
        try:
            image = load_image(source)
        except ImageLoadFailed as e:
            print(f'{source}: {e}')
            continue
        if tracker.projection is None:
            tracker.projection = _build_projection(args, image.width, image.height)
        loaded += 1
        result = tracker.analyze_frame(image, stamp)
        if result is not None:
            print(f'{source}: {result.text}')
    if not loaded:
        print('No frame could be loaded.')
        return 1
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        return run(args)
    except ValueError as e:
        parser.error(str(e))


if __name__ == '__main__':
    sys.exit(main())
