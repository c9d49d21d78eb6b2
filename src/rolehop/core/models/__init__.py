from .AwsIdentity import AwsIdentity, AwsIdentityError
from .CachedSession import CACHE_MARGIN_SECONDS, CachedSession
from .CredentialContext import AMBIENT_CREDENTIAL_VARS, CredentialContext
from .Profile import AssumedRole, DirectKeys, Profile
from .ResolvedIdentity import ResolvedIdentity

__all__ = [
    "AMBIENT_CREDENTIAL_VARS",
    "AssumedRole",
    "AwsIdentity",
    "AwsIdentityError",
    "CACHE_MARGIN_SECONDS",
    "CachedSession",
    "CredentialContext",
    "DirectKeys",
    "Profile",
    "ResolvedIdentity",
]
