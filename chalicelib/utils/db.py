import functools
import os
from typing import Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from chalicelib.constants import keys_structure
from chalicelib.utils import exceptions
from chalicelib.utils.logger import logger, log_exception

logged_table_methods = ('put_item', 'get_item', 'update_item', 'delete_item', 'query')

_DB = None


def aws_config_ddb() -> Config:
    return Config(retries={'max_attempts': 3}, region_name=os.environ.get('AWS_REGION', 'eu-central-1'))


def log_db_operation(func):
    """
        should be used for any atomic
        get/put item in the code
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args}, kwargs={kwargs}')
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            log_exception(e, msg=f'Got exception while trying to {func.__name__}: ')
            raise
        logger.info(f'{func.__name__}:: SUCCESS')
        return result

    return wrapper


def get_resource():
    if os.environ.get('ENDPOINT_URL'):
        return boto3.resource('dynamodb', endpoint_url=os.environ.get('ENDPOINT_URL'), config=aws_config_ddb())
    return boto3.resource('dynamodb', config=aws_config_ddb())


def get_table(table_name: str):
    table = get_resource().Table(table_name)
    for method_name in logged_table_methods:
        setattr(table, method_name, log_db_operation(getattr(table, method_name)))
    return table


def get_gen_table():
    global _DB
    if _DB is None:
        _DB = get_table(os.environ['GEN_TABLE_NAME'])
    return _DB


def reset_gen_table() -> None:
    """ Drops the cached table handle, e.g. after switching endpoint or region """
    global _DB
    _DB = None


def create_gen_table():
    """
    Creates the general table with the index used for per-user lookups.
    Deployed stages get the table from infrastructure code, this is for DynamoDB Local and tests.
    """
    table = get_resource().create_table(
        TableName=os.environ['GEN_TABLE_NAME'],
        KeySchema=[
            {'AttributeName': 'partkey', 'KeyType': 'HASH'},
            {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'partkey', 'AttributeType': 'S'},
            {'AttributeName': 'sortkey', 'AttributeType': 'S'},
            {'AttributeName': 'user_partkey', 'AttributeType': 'S'}
        ],
        GlobalSecondaryIndexes=[{
            'IndexName': keys_structure.gsi_user_index_name,
            'KeySchema': [
                {'AttributeName': 'user_partkey', 'KeyType': 'HASH'},
                {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
            ],
            'Projection': {'ProjectionType': 'ALL'}
        }],
        BillingMode='PAY_PER_REQUEST'
    )
    table.wait_until_exists()
    logger.info(f'create_gen_table ::: table {table.name} created')
    return table


def is_conditional_check_failed(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'


def put_db_record(item: dict, condition_expression=None, table=get_gen_table):
    kwargs = {'Item': item}
    if condition_expression is not None:
        kwargs['ConditionExpression'] = condition_expression
    try:
        table().put_item(**kwargs)
    except ClientError as error:
        if is_conditional_check_failed(error):
            raise exceptions.ConditionFailed(f"put_db_record ::: condition failed for {item.get('partkey')=}, "
                                             f"{item.get('sortkey')=}")
        raise


def update_db_record(key: dict, update_body: dict, allowed_attrs_to_update: list,
                     allowed_attrs_to_delete: list, condition_expression=None, table=get_gen_table):
    set_expr, expr_attr_values, remove_expr, expr_attr_names = generate_update_expression(
        update_body=update_body,
        allowed_attrs_to_update=allowed_attrs_to_update,
        allowed_attrs_to_delete=allowed_attrs_to_delete
    )
    update_expression = ' '.join(expr for expr in (set_expr, remove_expr) if expr)
    if not update_expression:
        logger.warning(f'update_db_record ::: nothing to update for {key=}')
        return None

    update_item_dict = {
        'Key': key,
        'ReturnValues': 'ALL_NEW',
        'UpdateExpression': update_expression,
        'ExpressionAttributeNames': expr_attr_names
    }
    if expr_attr_values:
        update_item_dict['ExpressionAttributeValues'] = expr_attr_values
    if condition_expression is not None:
        update_item_dict['ConditionExpression'] = condition_expression

    try:
        response = table().update_item(**update_item_dict)
    except ClientError as error:
        if is_conditional_check_failed(error):
            raise exceptions.ConditionFailed(f'update_db_record ::: condition failed for {key=}')
        raise
    return response.get('Attributes')


def generate_update_expression(update_body: dict, allowed_attrs_to_update: list, allowed_attrs_to_delete: list):
    """
    Generate expressions to update and delete attributes.
    if a key of update_body is empty - the attribute is deleted, else - attribute is updated
    """
    expr_attr_values = {}
    expr_attr_names = {}
    set_parts = []
    remove_parts = []
    for field in allowed_attrs_to_update:
        field_value = update_body.get(field, None)
        if field_value is None:
            continue
        expr_attr_names[f'#{field}'] = field
        if field_value in ['', [], {}] and field in allowed_attrs_to_delete:
            remove_parts.append(f'#{field}')
        else:
            expr_attr_values[f':{field}'] = field_value
            set_parts.append(f'#{field}=:{field}')

    set_expr = f"SET {', '.join(set_parts)}" if set_parts else None
    remove_expr = f"REMOVE {', '.join(remove_parts)}" if remove_parts else None
    return set_expr, expr_attr_values, remove_expr, expr_attr_names


def delete_db_record(key: dict, table=get_gen_table):
    table().delete_item(Key=key)


def get_db_item(partkey, sortkey, table=get_gen_table):
    result = table().get_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )

    if 'Item' in result:
        return result['Item']
    else:
        logger.info(f"get_db_item ::: record partkey={partkey} sortkey={sortkey} not found")
        raise exceptions.RecordNotFound(f'record partkey={partkey} sortkey={sortkey} not found')


def next_id(entity: str, count: int = 1, table=get_gen_table) -> int:
    """
    Allocates `count` sequential ids for the entity and returns the last one
    """
    response = table().update_item(
        Key={
            'partkey': keys_structure.counters_pk,
            'sortkey': keys_structure.counters_sk.format(entity=entity)
        },
        UpdateExpression='ADD #current_value :count',
        ExpressionAttributeNames={'#current_value': 'current_value'},
        ExpressionAttributeValues={':count': count},
        ReturnValues='UPDATED_NEW'
    )
    return int(response['Attributes']['current_value'])


def next_ids(entity: str, count: int) -> List[int]:
    if count <= 0:
        return []
    last_id = next_id(entity, count)
    return list(range(last_id - count + 1, last_id + 1))


def query_items_paginated(
        key_condition_expression,
        filter_expression=None,
        projection_expression=None,
        table=get_gen_table,
        index_name=None,
        expr_attr_names=None,
        limit=None,
        start_key=None
):
    kwargs = {'KeyConditionExpression': key_condition_expression}
    if filter_expression:
        kwargs.update({'FilterExpression': filter_expression})

    if projection_expression:
        kwargs.update({'ProjectionExpression': projection_expression})

    if expr_attr_names:
        kwargs.update({'ExpressionAttributeNames': expr_attr_names})

    if limit:
        kwargs.update({'Limit': int(limit)})

    if index_name:
        kwargs.update({'IndexName': index_name})

    if start_key:
        kwargs.update({'ExclusiveStartKey': start_key})

    resp = table().query(**kwargs)
    return resp['Items'], resp.get('LastEvaluatedKey')


def query_items_paged(key_condition_expression, filter_expression=None, projection_expression=None,
                      table=get_gen_table, index_name=None, expr_attr_names=None):
    """ This method shall be used whenever you think the query will
        return more than 1mb of data at once"""
    all_items = []
    items, last_evaluated_key = query_items_paginated(
        key_condition_expression,
        filter_expression=filter_expression,
        projection_expression=projection_expression,
        table=table,
        index_name=index_name,
        expr_attr_names=expr_attr_names
    )
    all_items.extend(items)

    while last_evaluated_key is not None:
        items, last_evaluated_key = query_items_paginated(
            key_condition_expression,
            filter_expression=filter_expression,
            projection_expression=projection_expression,
            table=table,
            index_name=index_name,
            expr_attr_names=expr_attr_names,
            start_key=last_evaluated_key
        )
        all_items.extend(items)

    return all_items


# Transactions

def put_op(item: dict, condition_expression: Optional[str] = None) -> Dict:
    put = {'Item': item}
    if condition_expression:
        put['ConditionExpression'] = condition_expression
    return {'Put': put}


def update_op(key: dict, update_expression: str, expr_attr_names: dict, expr_attr_values: dict,
              condition_expression: Optional[str] = None) -> Dict:
    update = {
        'Key': key,
        'UpdateExpression': update_expression,
        'ExpressionAttributeNames': expr_attr_names,
        'ExpressionAttributeValues': expr_attr_values
    }
    if condition_expression:
        update['ConditionExpression'] = condition_expression
    return {'Update': update}


def delete_op(key: dict, condition_expression: Optional[str] = None, expr_attr_names: Optional[dict] = None,
              expr_attr_values: Optional[dict] = None) -> Dict:
    delete = {'Key': key}
    if condition_expression:
        delete['ConditionExpression'] = condition_expression
        delete['ExpressionAttributeNames'] = expr_attr_names
        delete['ExpressionAttributeValues'] = expr_attr_values
    return {'Delete': delete}


def transact_write(transact_items: List[Dict], table=get_gen_table) -> None:
    """
    Writes all operations atomically, raises TransactionCancelled when any condition fails
    """
    table_ = table()
    for operation in transact_items:
        for action in operation.values():
            action['TableName'] = table_.name
    try:
        # the resource client serializes plain python values to DynamoDB types
        table_.meta.client.transact_write_items(TransactItems=transact_items)
    except ClientError as error:
        if error.response.get('Error', {}).get('Code') == 'TransactionCanceledException':
            log_exception(error, msg='transact_write ::: transaction cancelled')
            raise exceptions.TransactionCancelled(str(error))
        raise
    logger.info(f'transact_write ::: SUCCESS, {len(transact_items)} operations')
