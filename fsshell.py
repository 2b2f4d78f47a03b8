import cmd
import functools
import logging
import file_system
import path_resolver
from exception import *

logger = logging.getLogger(__name__)

ECHO_USAGE = "Invalid echo command format. Use: echo 'text' > file.txt"
QUOTES = ('"', "'")


def reports_errors(handler):
    '''
    Turn an FsException raised by a command into a single output line
    '''
    @functools.wraps(handler)
    def wrapper(self, arg):
        try:
            return handler(self, arg)
        except FsException as ex:
            logger.debug('%s(%r) failed: %s', handler.__name__, arg, ex)
            self.write(str(ex))

    return wrapper


def unquote(text):
    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        return text[1:-1]

    return text


class FsShell(cmd.Cmd):
    intro = 'Welcome to the Terminal! Type "exit" to quit.'

    def __init__(self, fs, stdin=None, stdout=None, strict_root=False):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False

        self._fs = fs
        self._strict_root = strict_root
        self._current_inode = self._fs.root_inode
        self.change_directory(self._fs.root_inode)

    @property
    def current_directory(self):
        return self._current_inode

    def write(self, text):
        print(text, file=self.stdout)

    def change_directory(self, new_dir_inode):
        if not new_dir_inode.is_dir:
            raise TypeMismatchException(F'Not a directory: {new_dir_inode.name}')

        self._current_inode = new_dir_inode
        self.update_prompt()

    def update_prompt(self):
        if self.use_rawinput:
            self.prompt = F'{self._fs.get_full_path(self._current_inode)} > '
        else:
            self.prompt = ''

    def resolve(self, path):
        return path_resolver.resolve(self._current_inode, path, strict_root=self._strict_root)

    def read_line(self):
        '''
        Next input line without its line ending, or None at end of input
        '''
        if self.use_rawinput:
            try:
                return input(self.prompt)
            except EOFError:
                return None

        self.stdout.write(self.prompt)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None

        return line.rstrip('\r\n')

    def cmdloop(self, intro=None):
        self.preloop()
        readline = None
        if self.use_rawinput and self.completekey:
            try:
                import readline
                old_completer = readline.get_completer()
                readline.set_completer(self.complete)
                readline.parse_and_bind(self.completekey + ': complete')
            except ImportError:
                readline = None

        try:
            if intro is not None:
                self.intro = intro
            if self.intro:
                self.write(self.intro)

            stop = False
            while not stop:
                line = self.read_line()
                if line is None:
                    stop = self.do_exit('')
                    continue

                line = self.precmd(line)
                stop = self.onecmd(line)
                stop = self.postcmd(stop, line)
            self.postloop()
        finally:
            if readline is not None:
                readline.set_completer(old_completer)

    def parseline(self, line):
        '''
        Split a line into the command token and the rest of the line
        '''
        line = line.strip()
        if not line:
            return None, None, line

        parts = line.split(None, 1)
        return parts[0], parts[1] if len(parts) > 1 else '', line

    def precmd(self, line):
        if line.strip().lower() == 'exit':
            return 'exit'

        return line

    def postcmd(self, stop, line):
        self.update_prompt()
        return stop

    def emptyline(self):
        return False

    @reports_errors
    def default(self, line):
        token = line.split()[0] if line.split() else line
        raise UnknownCommandException(F'Unknown command: {token}')

    @reports_errors
    def do_ls(self, arg):
        'List directory contents'
        args = arg.split()
        if not args:
            target = self._current_inode
        else:
            target = self.resolve(args[0])
            if target is None:
                raise NotFoundException(F'Directory not found: {args[0]}')

        if not target.is_dir:
            self.write(target.name)
            return

        for inode in target.list_children():
            self.write(inode.name)

    @reports_errors
    def do_cd(self, arg):
        'Change directory'
        args = arg.split()
        path = args[0] if args else ''

        target = self.resolve(path)
        if target is None:
            raise NotFoundException(F'Directory not found: {path}')

        if not target.is_dir:
            raise TypeMismatchException(F'Not a directory: {path}')

        self.change_directory(target)

    @reports_errors
    def do_pwd(self, arg):
        'Print the current directory'
        self.write(self._fs.get_full_path(self._current_inode))

    @reports_errors
    def do_mkdir(self, arg):
        'Create one or more directories: mkdir <name>...'
        names = arg.split()
        if not names:
            raise ParameterException('mkdir: missing operand')

        seen = set()
        for name in names:
            file_system.validate_name(name)
            if name in seen or self._current_inode.find_child(name) is not None:
                raise DuplicateNameException(F'{name} already exists')
            seen.add(name)

        with self._fs.db.atomic():
            for name in names:
                self._current_inode.add_child(self._fs.create_directory(name))

    @reports_errors
    def do_touch(self, arg):
        'Create an empty file: touch <name>'
        args = arg.split()
        if not args:
            raise ParameterException('touch: missing file operand')

        name = file_system.validate_name(args[0])
        existing = self._current_inode.find_child(name)
        if existing is not None:
            existing.touch()
            return

        with self._fs.db.atomic():
            self._current_inode.add_child(self._fs.create_file(name))

    @reports_errors
    def do_cat(self, arg):
        'Print the content of a file in the current directory'
        args = arg.split()
        name = args[0] if args else ''

        inode = self._current_inode.find_child(name)
        if inode is None or not inode.is_file:
            raise NotFoundException(F'File not found: {name}')

        self.write(inode.content)

    @reports_errors
    def do_echo(self, arg):
        '''
        Write text into a file of the current directory

        echo <text> > <file>   replace the content
        echo <text> >> <file>  append a line
        '''
        content, separator, file_name = ' '.join(arg.split()).partition('>')
        append = file_name.startswith('>')
        if append:
            file_name = file_name[1:]

        content = content.strip()
        file_name = file_name.strip()
        if not separator or not content or not file_name:
            raise ParameterException(ECHO_USAGE)

        content = unquote(content)
        inode = self._current_inode.find_child(file_name)
        if inode is None or not inode.is_file:
            raise NotFoundException(F'File not found: {file_name}')

        if append:
            inode.set_content(F'{inode.content}\n{content}' if inode.content else content)
            self.write(F'Text appended to {file_name}')
        else:
            inode.set_content(content)
            self.write(F'Text written to {file_name}')

    @reports_errors
    def do_grep(self, arg):
        'Show the files of the current directory containing a pattern'
        pattern = ' '.join(arg.split())

        for inode in self._current_inode.list_children():
            if inode.is_file and pattern in inode.content:
                self.write(F'Pattern found in {inode.name}: {inode.content}')

    @reports_errors
    def do_mv(self, arg):
        'Move a file or directory into a directory: mv <source> <destination>'
        args = arg.split()
        if len(args) < 2:
            raise ParameterException(
                'Invalid move operation. Use: mv <source> <destination>')

        source_path, destination_path = args[:2]
        source = self.resolve(source_path)
        destination = self.resolve(destination_path)

        if source is None or destination is None or not destination.is_dir:
            raise NotFoundException(
                F'Invalid move operation: {source_path} or {destination_path} not found')

        if source.parent is None:
            raise ParameterException(
                'Invalid move operation: cannot move the root directory')

        if source.id == destination.id or source.is_ancestor_of(destination):
            raise ParameterException(
                F'Invalid move operation: cannot move {source_path} into itself')

        if destination.find_child(source.name) is not None:
            raise DuplicateNameException(
                F'Invalid move operation: {destination_path} already contains {source.name}')

        destination.add_child(source)

        kind = 'Directory' if source.is_dir else 'File'
        self.write(F'{kind} moved from {source_path} to {destination_path}')

    @reports_errors
    def do_cp(self, arg):
        'Copy a file into a directory: cp <source> <destination>'
        args = arg.split()
        if len(args) < 2:
            raise ParameterException(
                'Invalid copy operation. Use: cp <source> <destination>')

        source_path, destination_path = args[:2]
        source = self.resolve(source_path)
        destination = self.resolve(destination_path)

        if source is None or destination is None or not source.is_file or not destination.is_dir:
            raise NotFoundException(
                F'Invalid copy operation: {source_path} or {destination_path} not found')

        if destination.find_child(source.name) is not None:
            raise DuplicateNameException(
                F'Invalid copy operation: {destination_path} already contains {source.name}')

        with self._fs.db.atomic():
            destination.add_child(self._fs.create_file(source.name, source.content))

        self.write(F'File copied from {source_path} to {destination_path}')

    @reports_errors
    def do_rm(self, arg):
        'Remove a file or directory: rm <path>'
        args = arg.split()
        if not args:
            raise ParameterException('Invalid remove operation. Use: rm <path>')

        path = args[0]
        target = self.resolve(path)
        if target is None:
            raise NotFoundException(F'Invalid remove operation: {path} not found')

        if target.parent is None:
            raise ParameterException(
                'Invalid remove operation: cannot remove the root directory')

        if target.id == self._current_inode.id or target.is_ancestor_of(self._current_inode):
            raise ParameterException(
                F'Invalid remove operation: {path} contains the current directory')

        kind = 'Directory' if target.is_dir else 'File'
        with self._fs.db.atomic():
            target.parent.remove_child(target)
            target.delete_tree()

        self.write(F'{kind} removed: {path}')

    def complete_path(self, text, line, beginidx, endidx, dirs_only=False):
        words = line[:endidx].split()
        word = words[-1] if len(words) > 1 and not line[:endidx].endswith(' ') else ''

        directory = self._current_inode
        if '/' in word:
            directory = self.resolve(word.rsplit('/', 1)[0] or '/')
            if directory is None or not directory.is_dir:
                return []

        return [inode.name for inode in directory.list_children()
                if inode.name.startswith(text) and (inode.is_dir or not dirs_only)]

    def complete_cd(self, text, line, beginidx, endidx):
        return self.complete_path(text, line, beginidx, endidx, dirs_only=True)

    complete_ls = complete_cd
    complete_cat = complete_path
    complete_echo = complete_path
    complete_mv = complete_path
    complete_cp = complete_path
    complete_rm = complete_path

    @reports_errors
    def do_exit(self, arg):
        'Quit shell'
        if arg.strip():
            raise UnknownCommandException('Unknown command: exit')

        self.write('Exiting...')
        return True
