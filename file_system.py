import logging
from datetime import datetime
from enum import IntFlag, auto
from pathlib import PurePosixPath
from peewee import *
from exception import *

logger = logging.getLogger(__name__)

ROOT_NAME = '/'
RESERVED_NAMES = ('.', '..')
_db = SqliteDatabase(None)


class InodeType(IntFlag):
    FILE = auto()
    DIRECTORY = auto()


def validate_name(name):
    if not name or '/' in name or name in RESERVED_NAMES:
        raise ParameterException(F'Invalid name: {name}')

    return name


class Inode(Model):
    id = AutoField(primary_key=True)
    node_type = IntegerField(index=True)
    name = TextField(index=True)
    content = TextField(default='')
    created_time = DateTimeField(default=datetime.now)
    modified_time = DateTimeField(default=datetime.now)

    class Meta:
        database = _db

    @property
    def is_dir(self):
        return self.node_type == InodeType.DIRECTORY

    @property
    def is_file(self):
        return self.node_type == InodeType.FILE

    @property
    def parent(self):
        entry = DirectoryEntry.get_or_none(DirectoryEntry.child == self.id)
        if entry:
            return entry.parent

        return None

    def _children_query(self):
        return Inode\
            .select()\
            .join(DirectoryEntry, on=(DirectoryEntry.child == Inode.id))\
            .where(DirectoryEntry.parent == self.id)\
            .order_by(DirectoryEntry.id)

    def list_children(self):
        '''
        Children in the order they were attached
        '''
        return list(self._children_query())

    def find_child(self, name):
        if name == '..':
            return self.parent

        return self._children_query().where(Inode.name == name).first()

    def add_child(self, node):
        '''
        Attach node as the last child of this directory.

        A node that already has a parent is detached from it in the same
        transaction, so a move never leaves the node under two directories.
        '''
        if not self.is_dir:
            raise TypeMismatchException(F'Not a directory: {self.name}')

        if self.find_child(node.name) is not None:
            raise DuplicateNameException(F'{node.name} already exists')

        if node.id == self.id or node.is_ancestor_of(self):
            raise ParameterException(
                F'Cannot move {node.name} into itself')

        with _db.atomic():
            DirectoryEntry.delete().where(DirectoryEntry.child == node.id).execute()
            DirectoryEntry.create(parent=self.id, child=node.id)

        logger.debug('attached inode %s (%s) to %s', node.id, node.name, self.id)

    def remove_child(self, node):
        removed = DirectoryEntry.delete().where(
            (DirectoryEntry.parent == self.id) & (DirectoryEntry.child == node.id)).execute()
        if removed:
            logger.debug('detached inode %s (%s) from %s',
                         node.id, node.name, self.id)

        return bool(removed)

    def walk(self):
        '''
        Pre-order traversal of this node and everything below it
        '''
        stack = [self]
        while stack:
            visiting = stack.pop()
            yield visiting

            if visiting.is_dir:
                stack.extend(reversed(visiting.list_children()))

    def is_ancestor_of(self, node):
        parent = node.parent
        while parent is not None:
            if parent.id == self.id:
                return True
            parent = parent.parent

        return False

    def delete_tree(self):
        inode_ids = [inode.id for inode in self.walk()]

        with _db.atomic():
            DirectoryEntry.delete().where(
                DirectoryEntry.child.in_(inode_ids) | DirectoryEntry.parent.in_(inode_ids)).execute()
            Inode.delete().where(Inode.id.in_(inode_ids)).execute()

        logger.debug('deleted %d inode(s) under %s', len(inode_ids), self.id)

    def set_content(self, content):
        if not self.is_file:
            raise TypeMismatchException(F'Not a file: {self.name}')

        self.content = content
        self.modified_time = datetime.now()
        self.save()

    def touch(self):
        self.modified_time = datetime.now()
        self.save()


class DirectoryEntry(Model):
    id = AutoField(primary_key=True)
    parent = ForeignKeyField(Inode, backref='entries')
    child = ForeignKeyField(Inode, unique=True, backref='owner_entry')

    class Meta:
        database = _db
        indexes = (
            (('parent', 'child'), True),
        )


class FileSystem:
    '''
    A session-scoped tree kept in an in-memory SQLite database.

    Only one FileSystem is open at a time: creating a new one closes the
    previous session and discards its tree.
    '''

    def __init__(self):
        self._db = _db
        if not self._db.is_closed():
            self._db.close()

        self._db.init(':memory:')
        self._db.connect()
        self._db.create_tables([Inode, DirectoryEntry])

        root = Inode.create(node_type=int(InodeType.DIRECTORY), name=ROOT_NAME)
        self._root_inode = root
        logger.debug('created session root inode %s', root.id)

    @property
    def db(self):
        return self._db

    @property
    def root_inode(self):
        return self._root_inode

    def create_file(self, name, content=''):
        validate_name(name)
        return Inode.create(node_type=int(InodeType.FILE), name=name, content=content)

    def create_directory(self, name):
        validate_name(name)
        return Inode.create(node_type=int(InodeType.DIRECTORY), name=name)

    def get_full_path(self, inode):
        names = []
        while inode is not None and inode.id != self._root_inode.id:
            names.append(inode.name)
            inode = inode.parent

        return str(PurePosixPath(ROOT_NAME, *reversed(names)))

    def close(self):
        if not self._db.is_closed():
            self._db.close()
