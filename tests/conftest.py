import pytest
from chalice.test import Client
from moto import mock_aws

from app import app
from chalicelib.utils import db
from tests.utils.fixtures import create_test_user, id_user, token_user, id_other_user, token_other_user

test_table_name = 'trovii-test'


@pytest.fixture
def aws_environment(monkeypatch):
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_REGION', 'eu-central-1')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'eu-central-1')
    monkeypatch.setenv('GEN_TABLE_NAME', test_table_name)
    monkeypatch.delenv('ENDPOINT_URL', raising=False)
    monkeypatch.delenv('STRICT_STATUS_TRANSITIONS', raising=False)
    monkeypatch.delenv('MAX_DELIVERY_FEE', raising=False)


@pytest.fixture
def gen_table(aws_environment):
    with mock_aws():
        db.reset_gen_table()
        yield db.create_gen_table()
    db.reset_gen_table()


@pytest.fixture
def chalice_gateway(gen_table):
    with Client(app, stage_name='test') as client:
        yield client


@pytest.fixture
def user(gen_table):
    return create_test_user(id_user, token_user)


@pytest.fixture
def other_user(gen_table):
    return create_test_user(id_other_user, token_other_user)
