import pytest
from payments.gateway import reset_gateway


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield
    reset_gateway()
