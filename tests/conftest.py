import json
from typing import Any, Dict

import pytest


SAMPLE_DOCUMENT: Dict[str, Any] = {
    "syncToken": "1700000000",
    "createDate": "2023-11-14-22-13-20",
    "prefixes": [
        {"ip_prefix": "10.0.0.0/8", "region": "us-east-1", "service": "EC2", "network_border_group": "us-east-1"},
        {"ip_prefix": "172.16.0.0/12", "region": "eu-west-1", "service": "EC2", "network_border_group": "eu-west-1"},
        {"ip_prefix": "not-a-cidr", "region": "us-east-1", "service": "EC2", "network_border_group": "us-east-1"},
        {"ip_prefix": "3.5.0.0/16", "region": "us-east-1", "service": "S3", "network_border_group": "us-east-1"},
    ],
    "ipv6_prefixes": [
        {"ipv6_prefix": "2600:1f18::/33", "region": "us-east-1", "service": "EC2", "network_border_group": "us-east-1"},
    ],
}


@pytest.fixture
def sample_document() -> Dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_DOCUMENT))
