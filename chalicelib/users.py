from datetime import datetime, timezone
from typing import Tuple, Dict, Optional

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.utils import exceptions
from chalicelib.utils.data import now_iso
from chalicelib.utils.logger import logger


class User(EntityBase):
    """
    Accounts are owned by the auth provider, the API only reads them
    """
    pk = keys_structure.users_pk
    sk = keys_structure.users_sk
    counter_name = 'users'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'email': lambda x: isinstance(x, str),
        'created_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'name': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, id_)
        self.email: str = kwargs.get('email')
        self.name: Optional[str] = kwargs.get('name')
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.record_type = 'user'

    @classmethod
    def init_get_by_id(cls, user_id: str):
        c = cls(user_id)
        c.__init__(**c._get_db_item())
        return c

    @classmethod
    def exists(cls, user_id: str) -> bool:
        try:
            cls.init_get_by_id(user_id)
        except exceptions.RecordNotFound:
            return False
        return True

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'email': self.email,
            'name': self.name,
            'created_at': self.created_at
        }


class Session(EntityBase):
    pk = keys_structure.sessions_pk
    sk = keys_structure.sessions_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'expires_at': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)
        # the session token is the record id, sessions are not listed per user
        self.session_user_id: Optional[str] = kwargs.get('user_id')
        self.expires_at: str = kwargs.get('expires_at')
        self.record_type = 'session'

    @classmethod
    def init_get_by_token(cls, token: str):
        c = cls(token)
        c.__init__(**c._get_db_item())
        return c

    def is_expired(self) -> bool:
        try:
            expires_at = datetime.fromisoformat(self.expires_at)
        except (TypeError, ValueError):
            logger.warning(f'Session.is_expired ::: unreadable expires_at={self.expires_at}')
            return True
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= datetime.now(timezone.utc)

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(token=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'user_id': self.session_user_id,
            'expires_at': self.expires_at
        }
