"""
CLI entry point for modpatch.

Usage:
    modpatch run [-c CONFIG] [--settings FILE]    Apply enabled mods to the output mod
    modpatch preprocess <script>                  Show how a mod script is segmented
    modpatch init-config [path]                   Write a default config file
"""

import argparse
import logging
import sys
from pathlib import Path

from modpatch import __version__

logger = logging.getLogger(__name__)


def cmd_run(args):
    """Apply enabled mods to the output mod."""
    from .config import load_run_config
    from .errors import ModPatchError
    from .runlog import RunJournal, configure_logging
    from .task import load_settings_file, run_mod_task

    try:
        config = load_run_config(Path(args.config) if args.config else None)
        config.override(
            settings_path=args.settings,
            dry_run=True if args.dry_run else None,
            include_mods=args.include or None,
            exclude_mods=args.exclude or None,
            log_level=args.log_level,
        )
        configure_logging(config.log_level, config.log_file)
        if config.config_path:
            logger.info("Using config file: %s", config.config_path)
        if config.dry_run:
            logger.warning("DRY RUN")
        config.validate()
        if config.settings_path is None:
            logger.error("Mod manager settings not configured, set settings_path")
            return 1
        settings = load_settings_file(config.settings_path)
        if not config.output_mod_name and settings.output_mod_name:
            config.override(output_mod_name=settings.output_mod_name)

        logger.info("Use output to: %s", config.output_data_path)
        logger.info("Use input data from: %s", config.base_input_path)
        if config.user_input_path:
            logger.info("Use user input data from: %s", config.user_input_path)
        if config.library_path:
            logger.info("Use library path: %s", config.library_path)

        journal = RunJournal(enabled=config.journal and not config.dry_run)
        summary = run_mod_task(config, settings, journal=journal)
    except ModPatchError as e:
        logger.error("%s", e)
        return 1

    print(summary)
    return 0 if summary.ok else 1


def cmd_preprocess(args):
    """Show how a mod script is segmented."""
    from .errors import DirectiveError
    from .script.preprocessor import preprocess_script

    path = Path(args.script)
    try:
        code = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        segments = preprocess_script(code, str(path))
    except DirectiveError as e:
        print(f"Directive error: {e}", file=sys.stderr)
        return 1

    separator = "=" * 80
    for segment in segments:
        print(separator)
        if segment.is_library:
            print(f"library: {segment.library}")
        else:
            print(f"inline: {segment.info.filename} (line offset {segment.info.line_offset})")
            if args.verbose:
                print("-" * 80)
                print(segment.code)
    print(separator)
    print(f"{len(segments)} segment(s)")
    return 0


def cmd_init_config(args):
    """Write a default config file."""
    from .config import write_default_config

    path = write_default_config(Path(args.path) if args.path else None)
    print(f"Wrote default config: {path}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="modpatch",
        description="Apply scripted data mods to game asset files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    modpatch run -c modpatch.yaml
    modpatch run --dry-run --exclude LootFilter
    modpatch preprocess mods/ExpandedStash/mod.py -v
"""
    )
    parser.add_argument('--version', action='version', version=f'modpatch {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # run
    run_p = subparsers.add_parser('run', help='Apply enabled mods')
    run_p.add_argument('-c', '--config', help='Run config file (YAML)')
    run_p.add_argument('-s', '--settings', help='Mod manager settings export (YAML/JSON)')
    run_p.add_argument('-n', '--dry-run', action='store_true', help='Log writes instead of performing them')
    run_p.add_argument('--include', action='append', metavar='MOD', help='Also run this mod')
    run_p.add_argument('--exclude', action='append', metavar='MOD', help='Do not run this mod')
    run_p.add_argument('--log-level', help='DEBUG, INFO, WARNING or ERROR')
    run_p.set_defaults(func=cmd_run)

    # preprocess
    pp_p = subparsers.add_parser('preprocess', help='Show script segments')
    pp_p.add_argument('script', help='Mod script to preprocess')
    pp_p.add_argument('-v', '--verbose', action='store_true', help='Print segment code')
    pp_p.set_defaults(func=cmd_preprocess)

    # init-config
    init_p = subparsers.add_parser('init-config', help='Write a default config file')
    init_p.add_argument('path', nargs='?', help='Destination (default ~/.modpatch/config.yaml)')
    init_p.set_defaults(func=cmd_init_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
