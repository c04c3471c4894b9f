import functools
from typing import Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from chalicelib.constants import substitute_keys
from chalicelib.utils import config, data, exceptions
from chalicelib.utils.logger import logger, log_exception

need_return_capacity = ('put_item', 'get_item', 'update_item', 'delete_item')

_DB: Dict[tuple, object] = {}


def aws_config_ddb() -> Config:
    """Throttling retries with exponential backoff are done by botocore"""
    return Config(retries={'max_attempts': 30}, region_name=config.aws_region())


def db_call(func):
    """
        should be used for any atomic
        get/put item in the code,
        logs the call and raises ConditionalCheckFailed for a failed condition
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args}, kwargs={kwargs}')
        if func.__name__ not in need_return_capacity:
            raise RuntimeError("This decorator only for DynamoDB methods")
        kwargs.update({'ReturnConsumedCapacity': 'TOTAL'})
        try:
            result = func(*args, **kwargs)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException':
                raise exceptions.ConditionalCheckFailed(f'{func.__name__}:: condition check failed')
            log_exception(e, msg=f'Got exception while trying to {func.__name__}: ')
            raise
        logger.info(f'{func.__name__}:: SUCCESS')
        return result

    return wrapper


def get_table(table_name: str):
    """
    Table resource with the item calls wrapped by db_call,
    cached per table name and endpoint
    """
    endpoint_url = config.endpoint_url()
    cache_key = (table_name, endpoint_url)
    if cache_key not in _DB:
        if endpoint_url:
            table = boto3.resource('dynamodb', endpoint_url=endpoint_url, config=aws_config_ddb()).Table(table_name)
        else:
            table = boto3.resource('dynamodb', config=aws_config_ddb()).Table(table_name)

        table.put_item = db_call(table.put_item)
        table.get_item = db_call(table.get_item)
        table.update_item = db_call(table.update_item)
        table.delete_item = db_call(table.delete_item)
        _DB[cache_key] = table
    return _DB[cache_key]


def reset_table_cache() -> None:
    _DB.clear()


def get_gen_table():
    return get_table(config.gen_table_name())


def put_db_record(item: dict, table=get_gen_table, only_if_new: bool = False):
    """
    only_if_new makes the put conditional on the key being free,
    ConditionalCheckFailed is raised otherwise
    """
    kwargs = {'Item': item}
    if only_if_new:
        kwargs['ConditionExpression'] = 'attribute_not_exists(partkey)'
    table().put_item(**kwargs)


def delete_db_record(key: dict, table=get_gen_table):
    table().delete_item(Key=key)


def update_db_record(key: dict, update_body: dict, allowed_attrs_to_update: list,
                     allowed_attrs_to_delete: list, append_body: Optional[Dict[str, list]] = None,
                     condition: Optional[Dict] = None, table=get_gen_table):
    """
    append_body fields are appended to existing list attributes with list_append,
    condition maps attribute name -> value the stored record must still hold
    """
    data.substitute_keys(dict_to_process=update_body, base_keys=substitute_keys.to_db)
    set_expr, set_names, expr_attr_values, remove_expr, remove_names = generate_update_expression(
        update_body=update_body,
        allowed_attrs_to_update=allowed_attrs_to_update,
        allowed_attrs_to_delete=allowed_attrs_to_delete,
        append_body=append_body or {}
    )
    update_item_dict = {"Key": key, "ReturnValues": "ALL_NEW"}
    condition_names, condition_values = {}, {}
    if condition:
        condition_expr, condition_names, condition_values = generate_condition_expression(condition)
        update_item_dict["ConditionExpression"] = condition_expr

    set_response = None
    if set_expr:
        set_item_dict = {
            **update_item_dict,
            "UpdateExpression": set_expr,
            "ExpressionAttributeNames": {**set_names, **condition_names},
            "ExpressionAttributeValues": {**expr_attr_values, **condition_values}
        }
        set_response = table().update_item(**set_item_dict)

    remove_response = None
    if remove_expr:
        remove_item_dict = {
            **update_item_dict,
            "UpdateExpression": remove_expr,
            "ExpressionAttributeNames": {**remove_names, **condition_names}
        }
        if condition_values:
            remove_item_dict["ExpressionAttributeValues"] = condition_values
        remove_response = table().update_item(**remove_item_dict)

    return set_response, remove_response


def generate_update_expression(update_body: dict, allowed_attrs_to_update: list, allowed_attrs_to_delete: list,
                               append_body: Dict[str, list]):
    """
    Generate expressions to update and delete attributes.
    if a key of update_body is empty - the attribute is deleted, else - attribute is updated.
    Attribute names always go through ExpressionAttributeNames, so reserved words
    (status, name, location, ...) are safe to use as attributes
    """
    set_parts, set_names, expr_attr_values = [], {}, {}
    remove_parts, remove_names = [], {}
    for field in allowed_attrs_to_update:
        field_value = update_body.get(field, None)
        if field_value is None:
            continue
        # if field is in update_body but is equal to empty string, list etc. - delete field
        if field_value in ['', [], {}] and field in allowed_attrs_to_delete:
            remove_names[f'#{field}'] = field
            remove_parts.append(f'#{field}')
        else:
            # if field is in update_body and has a real value - update field
            set_names[f'#{field}'] = field
            expr_attr_values[f':{field}'] = field_value
            set_parts.append(f'#{field}=:{field}')

    for field, values in append_body.items():
        set_names[f'#{field}'] = field
        expr_attr_values[f':{field}'] = values
        expr_attr_values[':empty_list'] = []
        set_parts.append(f'#{field}=list_append(if_not_exists(#{field}, :empty_list), :{field})')

    set_expr = f"SET {', '.join(set_parts)}" if set_parts else None
    remove_expr = f"REMOVE {', '.join(remove_parts)}" if remove_parts else None
    return set_expr, set_names, expr_attr_values, remove_expr, remove_names


def generate_condition_expression(condition: dict):
    names, values, parts = {}, {}, []
    for field, expected in condition.items():
        names[f'#cond_{field}'] = field
        values[f':cond_{field}'] = expected
        parts.append(f'#cond_{field} = :cond_{field}')
    return ' AND '.join(parts), names, values


def get_db_item(partkey, sortkey, table=get_gen_table):
    result = table().get_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )

    if result.__contains__('Item'):
        return result['Item']
    else:
        logger.info(f"get_db_item ::: record partkey={partkey} sortkey={sortkey} not found")
        raise exceptions.RecordNotFound(f'record partkey={partkey} sortkey={sortkey} not found')


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
                      table=get_gen_table, index_name=None, expr_attr_names=None) -> List[Dict]:
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
