import argparse
import json
import logging
from typing import Optional

from psd_remapper.adapter import to_serializable_tree
from psd_remapper.boundary import validate_boundaries
from psd_remapper.constants import TEMPLATE_MARKER
from psd_remapper.document import DocumentError, open_document, save_document
from psd_remapper.reconstructor import assemble_document
from psd_remapper.remapper import RemapJob, remap_many
from psd_remapper.resolver import (
    build_mapping_context,
    create_container_context,
    resolve_layer,
)
from psd_remapper.strategy import LayoutStrategy, StrategyError
from psd_remapper.template import extract_template_metadata
from psd_remapper.version import __version__

try:
    from IPython.lib.pretty import pprint
except ImportError:
    from pprint import pprint

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Remap PSD layer groups between template containers."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Be more verbose.")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--marker",
        default=TEMPLATE_MARKER,
        help="Name of the template group [default: %(default)s].",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser(
        "show", help="Show the template containers and design layers"
    )
    show_parser.add_argument("input_file", help="Input PSD file")

    validate_parser = subparsers.add_parser(
        "validate", help="Check design layers against their containers"
    )
    validate_parser.add_argument("input_file", help="Input PSD file")

    remap_parser = subparsers.add_parser(
        "remap", help="Remap design groups into the containers of a target template"
    )
    remap_parser.add_argument("source_file", help="Source PSD with design groups")
    remap_parser.add_argument("target_file", help="Target PSD with a template group")
    remap_parser.add_argument("output_file", help="Output PSD file")
    remap_parser.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="SOURCE=TARGET",
        help="Container mapping; defaults to containers present in both files.",
    )
    remap_parser.add_argument(
        "--strategy", help="Layout strategy JSON applied to every mapping"
    )
    remap_parser.add_argument(
        "--no-pixels",
        action="store_true",
        help="Skip pixel data and write placeholders.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> Optional[int]:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    package_logger = logging.getLogger("psd_remapper")
    if args.verbose:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.INFO)

    try:
        if args.command == "show":
            return _show(args)
        elif args.command == "validate":
            return _validate(args)
        elif args.command == "remap":
            return _remap(args)
    except (DocumentError, StrategyError, OSError) as e:
        logger.error(str(e))
        return 1
    return None


def _show(args: argparse.Namespace) -> Optional[int]:
    document = open_document(args.input_file, load_pixels=False)
    pprint(extract_template_metadata(document, marker=args.marker))
    pprint(to_serializable_tree(document.children, marker=args.marker))
    return None


def _validate(args: argparse.Namespace) -> Optional[int]:
    document = open_document(args.input_file, load_pixels=False)
    template = extract_template_metadata(document, marker=args.marker)
    report = validate_boundaries(document, template, marker=args.marker)
    for issue in report:
        print("%s: %s" % (issue.type.value, issue.message))
    if not report.is_valid:
        return 1
    print("OK: %d container(s) checked" % len(template))
    return None


def _remap(args: argparse.Namespace) -> Optional[int]:
    source = open_document(args.source_file, load_pixels=not args.no_pixels)
    target = open_document(args.target_file, load_pixels=False)
    source_template = extract_template_metadata(source, marker=args.marker)
    target_template = extract_template_metadata(target, marker=args.marker)
    design = to_serializable_tree(source.children, marker=args.marker)

    strategy = None
    if args.strategy:
        with open(args.strategy, "r", encoding="utf-8") as f:
            strategy = LayoutStrategy.from_dict(json.load(f))

    if args.map:
        pairs = []
        for item in args.map:
            source_name, sep, target_name = item.partition("=")
            if not sep:
                logger.error("Invalid mapping %r, expected SOURCE=TARGET", item)
                return 1
            pairs.append((source_name, target_name))
    else:
        pairs = [
            (container.name, container.name)
            for container in source_template
            if target_template.find(container.name) is not None
        ]

    jobs = []
    for source_name, target_name in pairs:
        container = create_container_context(source_template, source_name)
        if container is None:
            logger.warning("Unknown source container %r", source_name)
            continue
        resolution = resolve_layer(container.container_name, design)
        context = build_mapping_context(container, resolution)
        if context is None:
            logger.warning("%s: %s", source_name, resolution.message)
            continue
        target_container = target_template.find(target_name)
        if target_container is None:
            logger.warning("Unknown target container %r", target_name)
            continue
        jobs.append(RemapJob(context, target_container, strategy, source.source))

    payloads = remap_many(jobs)
    for payload in payloads:
        logger.info(
            "%s -> %s: %s (scale %.2f)",
            payload.source_container,
            payload.target_container,
            payload.status.value,
            payload.scale_factor,
        )
    tree = assemble_document(target_template, payloads, {source.source: source})
    save_document(tree, args.output_file)
    return None


if __name__ == "__main__":
    main()
