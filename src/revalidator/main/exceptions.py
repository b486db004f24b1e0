class RevalidatorException(Exception):
    pass


class NotReadyException(RevalidatorException):
    pass
