import argparse
import logging
import sys
import file_system
import fsshell

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='vfs', description='Browse and edit an in-memory filesystem')
    parser.add_argument('--strict-root', action='store_true', default=False,
                        help='resolve paths starting with / from the root directory '
                        'instead of the current directory')
    parser.add_argument('--log-level', default='WARNING', choices=LOG_LEVELS,
                        help='logging level for diagnostics written to stderr')
    parser.add_argument('-q', '--quiet', action='store_true', default=False,
                        help='do not print the welcome banner')

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
        stream=sys.stderr)

    # a piped stdin is read line by line without prompts
    stdin = None if sys.stdin.isatty() else sys.stdin

    fs = file_system.FileSystem()
    shell = fsshell.FsShell(fs, stdin=stdin, strict_root=args.strict_root)
    if args.quiet:
        shell.intro = None

    try:
        shell.cmdloop()
    except KeyboardInterrupt:
        shell.write('Exiting...')
    finally:
        fs.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())
