"""
Row-level security for ORM sessions.

Every session is opened for one caller (``info['caller']``), for nobody
(anonymous, public reads only) or as the service role (``info['service_role']``,
policies bypassed). For caller and anonymous sessions:

- every ORM SELECT, refresh and relationship load carries the read criteria
  of each entity, so invisible rows never come back;
- ORM bulk DELETE carries the delete criteria;
- ORM bulk INSERT/UPDATE of a guarded entity is rejected;
- Core statements that name a guarded table directly, and textual SQL, are
  rejected since no criteria can be attached to them;
- each flush checks the insert/update/delete predicate of every pending row,
  and use cases call ``authorize`` for writes the flush may not see.

Statements run on ``session.connection()`` are not session statements and
are reserved for service code.
"""

import logging
from types import SimpleNamespace

from sqlalchemy import TableClause, event, inspect, select
from sqlalchemy.orm import Session, with_loader_criteria
from sqlalchemy.sql import visitors
from sqlalchemy.sql.dml import UpdateBase
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.selectable import Alias, Join, Select

from .errors import AuthorizationDenied
from .metrics import POLICY_DENIALS
from .models import Profile
from .policies import Action, POLICIES, policy_for

logger = logging.getLogger(__name__)

CALLER = 'caller'
SERVICE_ROLE = 'service_role'
SKIP_POLICIES = 'skip_row_policies'
RAW_SQL = 'raw_sql'

GUARDED_TABLES = {model.__tablename__: model for model in POLICIES}


class PolicySession(Session):
    """Sync session class behind every AsyncSession handed out by AsyncSessionLocal."""

    @property
    def caller(self):
        return self.info.get(CALLER)

    @property
    def is_service(self) -> bool:
        return bool(self.info.get(SERVICE_ROLE))


def open_session(caller):
    """AsyncSession whose reads and writes are checked against ``caller``."""
    from .models import AsyncSessionLocal
    return AsyncSessionLocal(info={CALLER: caller})


def service_session():
    """AsyncSession that bypasses row policies. Only privileged use cases may open one."""
    from .models import AsyncSessionLocal
    return AsyncSessionLocal(info={SERVICE_ROLE: True})


def lookup_role(session: Session, caller):
    """Current role of ``caller`` as stored in profiles, read fresh on every call."""
    if caller is None:
        return None
    with session.no_autoflush:
        stmt = select(Profile.role).where(Profile.id == caller.id).execution_options(**{SKIP_POLICIES: True})
        return session.execute(stmt).scalar_one_or_none()


def deny(target, action: Action, caller):
    name = getattr(target, '__tablename__', target)
    POLICY_DENIALS.labels(entity=name, action=action.value).inc()
    logger.info({'msg': 'policy_denied', 'entity': name, 'action': action.value,
                 'caller': str(caller.id) if caller else None})
    raise AuthorizationDenied(f'{action.value} on {name} is not permitted')


def committed_row(obj) -> SimpleNamespace:
    """Column values as last loaded from the database, ignoring pending changes."""
    state = inspect(obj)
    values = {}
    for attr in state.mapper.column_attrs:
        hist = state.attrs[attr.key].history
        if hist.deleted:
            values[attr.key] = hist.deleted[0]
        elif hist.unchanged:
            values[attr.key] = hist.unchanged[0]
        else:
            values[attr.key] = None
    return SimpleNamespace(**values)


def _evaluate(obj, action: Action, caller, role):
    if action is Action.INSERT:
        allowed = policy_for(obj).allows(action, caller, obj, role)
    elif action is Action.UPDATE:
        allowed = policy_for(obj).allows(action, caller, committed_row(obj), role, new=obj)
    else:
        allowed = policy_for(obj).allows(action, caller, committed_row(obj), role)
    if not allowed:
        deny(type(obj), action, caller)


def authorize(session: Session, obj, action: Action):
    """Check the write policy for ``obj`` now, even if the flush would find nothing to write."""
    if session.is_service:
        return
    _evaluate(obj, action, session.caller, lookup_role(session, session.caller))


def _mapped_class(clause):
    annotations = getattr(clause, '_annotations', None) or {}
    mapper = annotations.get('parentmapper')
    return mapper.class_ if mapper is not None else None


def _from_tables(clause):
    """(table, mapped class or None) for each table directly in a FROM element."""
    if isinstance(clause, Join):
        yield from _from_tables(clause.left)
        yield from _from_tables(clause.right)
    elif isinstance(clause, Alias) and isinstance(clause.element, TableClause):
        yield clause.element, _mapped_class(clause)
    elif isinstance(clause, TableClause):
        yield clause, _mapped_class(clause)


def _unguarded_target(statement):
    """Guarded model (or RAW_SQL) the statement reaches without going through its entity.

    A guarded Table named directly anywhere in the statement counts, as does a
    table a Core SELECT pulls in through plain columns. ORM aliases of guarded
    entities are rejected as well since they wrap the bare table.
    """
    if isinstance(statement, UpdateBase):
        for table, entity in _from_tables(statement.table):
            if entity is None and table.name in GUARDED_TABLES:
                return GUARDED_TABLES[table.name]
    for element in visitors.iterate(statement):
        if isinstance(element, TextClause):
            return RAW_SQL
        if isinstance(element, TableClause):
            if _mapped_class(element) is None and element.name in GUARDED_TABLES:
                return GUARDED_TABLES[element.name]
            continue
        if not isinstance(element, Select):
            continue
        entities = {d['entity'] for d in element.column_descriptions if d.get('entity') is not None}
        for frm in element.get_final_froms():
            for table, entity in _from_tables(frm):
                model = GUARDED_TABLES.get(table.name)
                if model is not None and entity is None and model not in entities:
                    return model
    return None


@event.listens_for(PolicySession, 'do_orm_execute')
def _apply_row_criteria(orm_execute_state):
    session = orm_execute_state.session
    if session.is_service or orm_execute_state.execution_options.get(SKIP_POLICIES):
        return
    caller = session.caller
    statement = orm_execute_state.statement

    if orm_execute_state.is_insert:
        action = Action.INSERT
    elif orm_execute_state.is_update:
        action = Action.UPDATE
    elif orm_execute_state.is_delete:
        action = Action.DELETE
    else:
        action = Action.READ
    target = _unguarded_target(statement)
    if target is not None:
        deny(target, action, caller)

    if orm_execute_state.is_insert or orm_execute_state.is_update:
        mappers = orm_execute_state.all_mappers or [orm_execute_state.bind_mapper]
        for mapper in mappers:
            if mapper is not None and mapper.class_ in POLICIES:
                deny(mapper.class_, action, caller)
        return

    if orm_execute_state.is_select:
        criteria = [(model, policy.read_criteria(caller)) for model, policy in POLICIES.items()]
    elif orm_execute_state.is_delete:
        criteria = [(model, policy.delete_criteria(caller)) for model, policy in POLICIES.items()]
    else:
        return

    orm_execute_state.statement = statement.options(
        *(with_loader_criteria(model, clause, include_aliases=True) for model, clause in criteria)
    )


@event.listens_for(PolicySession, 'before_flush')
def _check_row_policies(session, flush_context, instances):
    if session.is_service:
        return
    caller = session.caller
    role = lookup_role(session, caller)

    for obj in session.new:
        _evaluate(obj, Action.INSERT, caller, role)

    for obj in session.dirty:
        if session.is_modified(obj, include_collections=False):
            _evaluate(obj, Action.UPDATE, caller, role)

    for obj in session.deleted:
        _evaluate(obj, Action.DELETE, caller, role)
