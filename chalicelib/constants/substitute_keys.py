# db attribute -> ui key, None drops the attribute from ui output
from_db = {
    'id_': 'id',
    'partkey': None,
    'sortkey': None,
    'user_partkey': None,
    'record_type': None,
}
