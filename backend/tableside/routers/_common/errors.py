"""
Domain exception to HTTP exception mapping.

Domain services raise plain exceptions; routers wrap their calls in
translate_domain_errors() so every endpoint maps them the same way.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from shared.utils.exceptions import (
    BackendUnavailableError,
    ConfirmationRequiredError,
    ConflictError,
    DuplicateEntityError,
    FieldValidationError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    OrderNotFoundError,
    TableNotFoundError,
    ValidationError,
)
from tableside.repositories import DuplicateRecordError, PersistenceUnavailableError
from tableside.services.domain import (
    ConfirmationRequired,
    DuplicateTableError,
    EmptyCartError,
    InvalidCustomerInputError,
    NotATerminalError,
    OrderArchivedError,
    OrderNotFound,
    OrderTransitionError,
    StaleOrderError,
    UnknownCustomerError,
    UnknownTableError,
)

# Seconds clients should wait before retrying after a backend outage
BACKEND_RETRY_AFTER = 5


@contextmanager
def translate_domain_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except UnknownTableError as e:
        raise TableNotFoundError(e.table_id)
    except UnknownCustomerError as e:
        raise NotFoundError("Customer", table_id=e.table_id)
    except DuplicateTableError as e:
        raise DuplicateEntityError("Table", e.table_id)
    except NotATerminalError as e:
        raise ValidationError(f"Table '{e.table_id}' is not a terminal", table_id=e.table_id)
    except ConfirmationRequired as e:
        raise ConfirmationRequiredError(e.action, affected=e.affected)
    except InvalidCustomerInputError as e:
        raise FieldValidationError(e.field, e.message)
    except EmptyCartError:
        raise ValidationError("Cart is empty")
    except OrderNotFound as e:
        raise OrderNotFoundError(e.order_id)
    except OrderTransitionError as e:
        if e.actor_denied:
            raise ForbiddenError(f"move order from '{e.current}' to '{e.new}'", order_id=e.order_id)
        raise InvalidTransitionError("order", e.current, e.new, order_id=e.order_id)
    except StaleOrderError as e:
        raise ConflictError(
            f"Order {e.order_id} changed to '{e.actual}' meanwhile. Refresh and try again.",
            order_id=e.order_id,
        )
    except OrderArchivedError as e:
        raise ConflictError(f"Order {e.order_id} is archived", order_id=e.order_id)
    except PersistenceUnavailableError:
        raise BackendUnavailableError(operation, retry_after=BACKEND_RETRY_AFTER)
    except DuplicateRecordError:
        raise ConflictError(f"Conflicting write during {operation}. Please try again.")
    except ValueError as e:
        raise ValidationError(str(e), operation=operation)
