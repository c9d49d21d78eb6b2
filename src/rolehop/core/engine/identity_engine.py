import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..models import AwsIdentity, AwsIdentityError, CredentialContext

logger = logging.getLogger(__name__)

# Verificação nunca faz retry: falhou, o caminho de resolução falhou.
_STS_CONFIG = Config(retries={"max_attempts": 1, "mode": "standard"})


def build_session(
    context: Optional[CredentialContext] = None,
    region: Optional[str] = None,
) -> boto3.session.Session:
    """
    Cria uma Session do boto3 a partir de um contexto explícito.
    Sem contexto, cai na cadeia padrão (variáveis de ambiente, instância, etc).
    """
    if context is None:
        return boto3.session.Session(region_name=region)

    return boto3.session.Session(
        aws_access_key_id=context.access_key_id,
        aws_secret_access_key=context.secret_access_key,
        aws_session_token=context.session_token or None,
        region_name=context.region or region,
    )


def get_current_aws_identity(
    context: Optional[CredentialContext] = None,
    region: Optional[str] = None,
    profile: Optional[str] = None,
) -> AwsIdentity:
    """
    Descobre a identidade AWS do contexto via STS (Security Token Service).

    Faz exatamente uma chamada `GetCallerIdentity`, que é somente leitura e
    não exige permissão nenhuma. `profile` só é usado para rotular o resultado.
    """
    session = build_session(context, region)
    sts = session.client("sts", config=_STS_CONFIG)

    try:
        resp = sts.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        raise AwsIdentityError(f"Não foi possível obter a identidade AWS atual: {e}") from e

    logger.debug("Caller identity resolved: %s", resp["Arn"])

    return AwsIdentity(
        account=resp["Account"],
        arn=resp["Arn"],
        user_id=resp["UserId"],
        region=session.region_name,
        profile=profile,
    )


def load_ambient_context(region: Optional[str] = None) -> Optional[CredentialContext]:
    """
    Congela as credenciais que a cadeia padrão do boto3 encontraria agora.
    Usado quando é preciso assumir uma role a partir do contexto ambiente.
    """
    session = build_session(None, region)
    credentials = session.get_credentials()
    if credentials is None:
        return None

    frozen = credentials.get_frozen_credentials()
    return CredentialContext(
        access_key_id=frozen.access_key,
        secret_access_key=frozen.secret_key,
        session_token=frozen.token,
        region=session.region_name,
    )


class StsVerifier:
    """Verifier usado pelo resolver; delega para get_current_aws_identity."""

    def __init__(self, region: Optional[str] = None) -> None:
        self.region = region

    def verify(
        self,
        context: Optional[CredentialContext],
        profile: Optional[str] = None,
    ) -> AwsIdentity:
        return get_current_aws_identity(context=context, region=self.region, profile=profile)
