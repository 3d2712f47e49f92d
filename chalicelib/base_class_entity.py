from typing import Tuple, Dict, List, Any, Optional

from chalicelib.constants import keys_structure
from chalicelib.utils import db as utils_db, exceptions
from chalicelib.utils.data import now_iso, to_db_value, to_ui_keys
from chalicelib.utils.logger import logger


class EntityBase:
    pk = None
    sk = None
    counter_name: Optional[str] = None

    required_immutable_fields_validation = {}
    required_mutable_fields_validation = {}
    optional_fields_validation = {}

    def __init__(self, id_):
        self.id_: Any[int, None] = id_
        self.record_type: str = ''
        self.request_data: Any[Dict, None] = None

    def _get_pk_sk(self) -> Tuple[str, str]:
        """
        Should be re-implemented in each child class
        :return:
        partkey, sortkey of db item for child
        """
        return self.pk, self.sk

    def _db_key(self) -> Dict:
        pk, sk = self._get_pk_sk()
        return {'partkey': pk, 'sortkey': sk}

    def _get_db_item(self) -> Dict:
        return utils_db.get_db_item(*self._get_pk_sk())

    def _to_dict(self) -> Dict:
        """
        Should be re-implemented in each child class
        :return:
        dict of item's attributes
        """
        return {
            'id_': self.id_,
            'record_type': self.record_type
        }

    def _allocate_id(self) -> None:
        if self.id_ is None:
            self.id_ = utils_db.next_id(self.counter_name)

    def _init_db_record(self) -> None:
        """
        New DB record initialization
        :return:
        None
        """
        pk, sk = self._get_pk_sk()
        self.db_record = {
            'partkey': pk,
            'sortkey': sk,
            'record_type': self.record_type,
            **to_db_value(self._to_dict())
        }
        user_id = getattr(self, 'user_id', None)
        if user_id is not None:
            self.db_record['user_partkey'] = keys_structure.gsi_user_pk.format(
                record_type=self.record_type, user_id=user_id)

    def _validate_mandatory_fields(self):
        """
        Validates mandatory fields if all fields have correct type to put to db
        Raise ValidationException in case if a field is not valid
        :return:
        None
        """
        for key, validator_func in {
            **self.required_immutable_fields_validation,
            **self.required_mutable_fields_validation
        }.items():
            if validator_func(self.db_record.get(key)) is False:
                message = f'Validation error occurred while validating the field={key}'
                logger.error(f"_validate_mandatory_fields ::: {message}")
                raise exceptions.ValidationException(message)

    def _validate_optional_fields(self):
        """
        Optional fields are checked only when present
        """
        for key, validator_func in self.optional_fields_validation.items():
            value = self.db_record.get(key)
            if value is not None and validator_func(value) is False:
                message = f'Validation error occurred while validating the optional field={key}'
                logger.error(f"_validate_optional_fields ::: {message}")
                raise exceptions.ValidationException(message)

    def _prepare_db_record(self) -> Dict:
        """
        Builds and validates the db record without writing it, used for transactions
        """
        self._allocate_id()
        self._init_db_record()
        self._validate_mandatory_fields()
        self._validate_optional_fields()
        return self.db_record

    def _get_validated_update_dict(self) -> Dict:
        """
        Validates fields for update
        Delete field if it is not valid
        :return:
        Clean dict for update
        (all invalid fields will be automatically excluded)
        """
        update_dict = to_db_value(self._to_dict())
        clean_dict = {}
        validation_dict = {**self.required_mutable_fields_validation, **self.optional_fields_validation}
        for key, value in update_dict.items():
            if key not in validation_dict:
                continue
            if validation_dict[key](value) is True:
                clean_dict[key] = value
            else:
                logger.warning(f'_get_validated_update_dict ::: {key=}, {value=} is not valid, '
                               f'removing from update dict..')
        return clean_dict

    def _create_db_record(self, condition_expression=None) -> None:
        """
        Creates entity db record
        :return:
        None
        """
        self._prepare_db_record()
        utils_db.put_db_record(self.db_record, condition_expression=condition_expression)
        logger.info(f"_create_db_record ::: {self.record_type=} {self.id_=} {self.db_record.get('partkey')=} "
                    f"{self.db_record.get('sortkey')=} successfully created")

    def _update_fields_whitelist(self) -> List:
        return [*self.required_mutable_fields_validation.keys(), *self.optional_fields_validation.keys()]

    def _update_db_record(self, condition_expression=None) -> Optional[Dict]:
        """
        Updates entity db record
        :return:
        all attributes of the updated record
        """
        pk, sk = self._get_pk_sk()
        if 'updated_at' in self.required_mutable_fields_validation:
            self.updated_at = now_iso()
        attributes = utils_db.update_db_record(
            key={'partkey': pk, 'sortkey': sk},
            update_body=self._get_validated_update_dict(),
            allowed_attrs_to_update=self._update_fields_whitelist(),
            allowed_attrs_to_delete=[],
            condition_expression=condition_expression
        )
        logger.info(f"_update_db_record ::: {self.record_type=} "
                    f"{self.id_=} {pk=} {sk=} successfully updated")
        return attributes

    def _delete_db_record(self) -> None:
        utils_db.delete_db_record(self._db_key())
        logger.info(f"_delete_db_record ::: {self.record_type=} {self.id_=} successfully deleted")

    def _to_ui(self) -> Dict:
        return to_ui_keys(self._to_dict())


class UserProductEntity(EntityBase):
    """
    Entity a user keeps at most once per product (cart rows, wishlist items).
    The row is written together with a marker keyed by (user, product), so a second
    row for the same product fails even when the user index is not up to date yet
    """
    marker_pk = None
    marker_sk = None

    def __init__(self, id_):
        EntityBase.__init__(self, id_)
        self.user_id: Optional[str] = None
        self.product_id: Optional[int] = None

    def _marker_key(self) -> Dict:
        return {
            'partkey': self.marker_pk.format(user_id=self.user_id),
            'sortkey': self.marker_sk.format(product_id=self.product_id)
        }

    def marker_delete_op(self) -> Dict:
        return utils_db.delete_op(self._marker_key())

    def _create_unique_record(self) -> None:
        """
        Raises TransactionCancelled when the user already has a record for the product
        """
        db_record = self._prepare_db_record()
        marker = {**self._marker_key(), 'record_type': f'{self.record_type}_marker', 'item_id': self.id_}
        utils_db.transact_write([
            utils_db.put_op(db_record, condition_expression='attribute_not_exists(partkey)'),
            utils_db.put_op(marker, condition_expression='attribute_not_exists(partkey)')
        ])
        logger.info(f"_create_unique_record ::: {self.record_type=} {self.id_=} {self.product_id=} successfully created")

    def _delete_unique_record(self) -> None:
        utils_db.transact_write([utils_db.delete_op(self._db_key()), self.marker_delete_op()])
        logger.info(f"_delete_unique_record ::: {self.record_type=} {self.id_=} successfully deleted")
