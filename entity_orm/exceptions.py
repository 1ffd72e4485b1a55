class OrmException(Exception):
    pass


class EntityWithoutIdentity(TypeError):
    pass


class EntityWithMultipleIdentities(TypeError):
    pass


class EntityPropertyWithoutDefault(TypeError):
    pass


class InvalidPrimaryKey(OrmException):
    pass


class MissingPrimaryKeyValue(OrmException):
    pass


class UnknownProperty(OrmException):
    pass


class MissingSetter(OrmException):
    pass


class TypeMismatch(OrmException):
    pass


class EntityTypeMismatch(OrmException):
    pass


class CannotDeleteUnstored(OrmException):
    pass


class MultipleResultsFound(OrmException):
    pass


class NotConnected(OrmException):
    pass


class DatabaseError(OrmException):
    pass


class ConfigurationError(OrmException):
    pass


class TransactionError(OrmException):
    pass


class NestedTransaction(TransactionError):
    pass


class NoActiveTransaction(TransactionError):
    pass


class TransactionFailed(TransactionError):
    """Raised by `Transaction.with_transaction` after rolling back, chained to the original error."""
