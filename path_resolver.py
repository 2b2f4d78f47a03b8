import logging

logger = logging.getLogger(__name__)

SEPARATOR = '/'


def get_root(inode):
    parent = inode.parent
    while parent is not None:
        inode = parent
        parent = inode.parent

    return inode


def split_path(path):
    return [component for component in path.split(SEPARATOR) if component]


def resolve(start, path, strict_root=False):
    '''
    Resolve path against the directory start.

    A path starting with / is walked from start unless strict_root is set,
    in which case it is walked from the root of the tree. Such a path only
    names directories. Returns None when any component can't be found;
    resolution never raises and never creates nodes.
    '''
    if path == SEPARATOR:
        return get_root(start)

    if path.startswith(SEPARATOR):
        current = get_root(start) if strict_root else start
        for component in split_path(path):
            current = current.find_child(component)
            if current is None or not current.is_dir:
                return None

        return current

    current = start
    for component in split_path(path):
        if not current.is_dir:
            return None

        if component == '.':
            continue
        elif component == '..':
            parent = current.parent
            if parent is not None:
                current = parent
        else:
            current = current.find_child(component)
            if current is None:
                logger.debug('%r: no %r under inode %s',
                             path, component, start.id)
                return None

    return current
