from .access_grant import AccessGrant  # noqa
from .access_token import AccessToken  # noqa
from .auth_request import AuthRequest  # noqa
from .client import Client  # noqa
from .issuer import Issuer  # noqa
