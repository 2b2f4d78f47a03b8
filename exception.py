class FsException(Exception):
    pass


class ParameterException(FsException):
    pass


class NotFoundException(FsException):
    pass


class TypeMismatchException(FsException):
    pass


class DuplicateNameException(FsException):
    pass


class UnknownCommandException(FsException):
    pass
