from datetime import datetime
from typing import Tuple, Dict, List, Any, Optional

from chalicelib.constants.substitute_keys import from_db, to_db
from chalicelib.utils import db as utils_db, exceptions
from chalicelib.utils.data import substitute_keys
from chalicelib.utils.logger import logger


def now_iso() -> str:
    return datetime.now().isoformat(timespec="milliseconds")


class EntityBase:
    pk = None
    sk = None

    required_immutable_fields_validation = {}
    required_mutable_fields_validation = {}
    optional_fields_validation = {}

    def __init__(self, id_):
        self.id_: str = id_
        self.record_type: str = ''
        self.db_record: dict = {}
        self.request_data: Any[Dict, None] = None

    @classmethod
    def init_get_by_id(cls, id_):
        c = cls(id_)
        c.__init__(**c._get_db_item())
        return c

    def _get_pk_sk(self) -> Tuple[str, str]:
        """
        Should be re-implemented in each child class
        :return:
        partkey, sortkey of db item for child
        """
        return self.pk, self.sk

    def _get_key(self) -> Dict:
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

    def _init_db_record(self) -> None:
        pk, sk = self._get_pk_sk()
        self.db_record = {
            'partkey': pk,
            'sortkey': sk,
            'record_type': self.record_type,
            **self._to_dict()
        }

    def _validate_mandatory_fields(self):
        """
        Validates mandatory fields if all fields have correct type to put to db
        Raise InvalidInput in case if a field is not valid
        """
        for key, validator_func in {
            **self.required_immutable_fields_validation,
            **self.required_mutable_fields_validation
        }.items():
            if validator_func(self.db_record.get(key)) is False:
                message = f'Validation error occurred while validating the field={key}'
                logger.error(f"validate_mandatory_fields ::: {message}")
                raise exceptions.InvalidInput(message)

    def _validate_optional_fields(self):
        """
        Optional fields are validated only when present
        """
        for key, validator_func in self.optional_fields_validation.items():
            value = self.db_record.get(key)
            if value is not None and validator_func(value) is False:
                message = f'Validation error occurred while validating the field={key}'
                logger.error(f"validate_optional_fields ::: {message}")
                raise exceptions.InvalidInput(message)

    def _get_validated_update_dict(self, update_dict: Dict) -> Dict:
        """
        Validates fields for update
        Delete field if it is not valid
        :return:
        Clean dict for update
        (all invalid fields will be automatically excluded)
        """
        clean_dict = {}
        validation_dict = {**self.required_mutable_fields_validation, **self.optional_fields_validation}
        for key, value in update_dict.items():
            if key in validation_dict and validation_dict[key](value) is True:
                clean_dict[key] = value
            else:
                logger.warning(f'_get_validated_update_dict ::: {key=}, {value=} is not valid, '
                               f'removing from update dict..')
        return clean_dict

    def _validate_db_record(self) -> None:
        """
        Builds the db record and validates it without writing,
        raise InvalidInput in case if a field is not valid
        """
        self._init_db_record()
        self._validate_mandatory_fields()
        self._validate_optional_fields()

    def _create_db_record(self, only_if_new: bool = True) -> None:
        self._validate_db_record()
        utils_db.put_db_record(self.db_record, only_if_new=only_if_new)
        logger.info(f"_create_db_record ::: {self.record_type=} {self.id_=} {self.db_record.get('partkey')=} "
                    f"{self.db_record.get('sortkey')=} successfully created")

    def _update_fields_whitelist(self) -> List:
        return [*self.required_mutable_fields_validation.keys(), *self.optional_fields_validation.keys()]

    def _update_db_record(self, update_dict: Dict, append_body: Optional[Dict[str, list]] = None,
                          condition: Optional[Dict] = None) -> Dict:
        """
        Updates entity db record and re-initializes the entity from the stored result
        :return:
        updated attributes
        """
        update_dict = self._get_validated_update_dict({**update_dict, 'date_updated': now_iso()})
        substitute_keys(dict_to_process=update_dict, base_keys=to_db)
        set_response, _ = utils_db.update_db_record(
            key=self._get_key(),
            update_body=update_dict,
            allowed_attrs_to_update=self._update_fields_whitelist(),
            allowed_attrs_to_delete=[],
            append_body=append_body,
            condition=condition
        )
        attributes = (set_response or {}).get('Attributes', {})
        if attributes:
            self.__init__(**attributes)
        logger.info(f"_update_db_record ::: {self.record_type=} {self.id_=} successfully updated")
        return attributes

    def _delete_db_record(self) -> None:
        utils_db.delete_db_record(self._get_key())
        logger.info(f"_delete_db_record ::: {self.record_type=} {self.id_=} successfully deleted")

    def _to_ui(self) -> Dict:
        item = self._to_dict()
        substitute_keys(dict_to_process=item, base_keys=from_db)
        return item
