"""Resolução de credenciais AWS para uma execução do rolehop.

Ordem de decisão (exatamente um caminho produz a identidade primária):

1. sem profile selecionado   -> verifica o contexto ambiente (cadeia do boto3)
2. profile selecionado       -> limpa variáveis AWS_* herdadas e carrega o profile
3. cache de sessão           -> reaproveita se a chave bater e não estiver na margem
4. DirectKeys                -> chaves de longo prazo; apaga o cache
5. AssumedRole               -> assume a role (MFA opcional) e grava o cache
6. chain hop (opcional)      -> assume ASSUME_ROLE_CHAIN_ARN a partir do resultado

Um cache válido encerra a resolução no passo 3: os passos 4 a 6 não rodam.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Dict, MutableMapping, Optional, Protocol

from ..config import Settings, load_settings
from ..credential_store import CredentialStore
from ..errors import AuthError, ConfigError
from ..models import (
    AMBIENT_CREDENTIAL_VARS,
    CACHE_MARGIN_SECONDS,
    AssumedRole,
    AwsIdentity,
    AwsIdentityError,
    CachedSession,
    CredentialContext,
    DirectKeys,
    Profile,
    ResolvedIdentity,
)
from ..models.CredentialContext import ENV_PROFILE
from ..models.ResolvedIdentity import (
    SOURCE_AMBIENT,
    SOURCE_ASSUMED,
    SOURCE_CACHE,
    SOURCE_CHAINED,
    SOURCE_DIRECT,
)
from .identity_engine import StsVerifier, load_ambient_context
from .mfa_prompt import MfaPrompt
from .role_engine import (
    DEFAULT_DURATION_SECONDS,
    AssumedCredentials,
    MfaToken,
    RoleAssumptionError,
    StsRoleAssumer,
    now_ms,
)

logger = logging.getLogger(__name__)

ENV_CHAIN_ROLE_ARN = "ASSUME_ROLE_CHAIN_ARN"
DEFAULT_SESSION_NAME_PREFIX = "rolehop_assumerole"


class Verifier(Protocol):
    def verify(
        self, context: Optional[CredentialContext], profile: Optional[str] = None
    ) -> AwsIdentity: ...


class RoleAssumer(Protocol):
    def assume(
        self,
        source: CredentialContext,
        role_arn: str,
        session_name_prefix: str,
        duration_seconds: Optional[int] = None,
        mfa: Optional[MfaToken] = None,
    ) -> AssumedCredentials: ...


class TokenPrompt(Protocol):
    def prompt(self, serial: str) -> str: ...


class SessionStore(Protocol):
    def load_profiles(self) -> Dict[str, Profile]: ...

    def load_cache(self) -> Optional[CachedSession]: ...

    def save_cache(self, session: CachedSession) -> None: ...

    def delete_cache(self) -> None: ...


@dataclass
class _Step:
    identity: AwsIdentity
    context: Optional[CredentialContext]
    source: str
    expire_time: Optional[int] = None


def _minutes(ms: int) -> int:
    return round(ms / 60000)


class CredentialResolver:
    def __init__(
        self,
        store: SessionStore,
        verifier: Verifier,
        assumer: RoleAssumer,
        mfa_prompt: TokenPrompt,
        *,
        environ: Optional[MutableMapping[str, str]] = None,
        region: Optional[str] = None,
        ambient_loader: Optional[Callable[[], Optional[CredentialContext]]] = None,
        cache_margin_seconds: int = CACHE_MARGIN_SECONDS,
        default_duration_seconds: int = DEFAULT_DURATION_SECONDS,
        session_name_prefix: str = DEFAULT_SESSION_NAME_PREFIX,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.verifier = verifier
        self.assumer = assumer
        self.mfa_prompt = mfa_prompt
        self.environ = os.environ if environ is None else environ
        self.region = region
        self.ambient_loader = ambient_loader
        self.cache_margin_seconds = cache_margin_seconds
        self.default_duration_seconds = default_duration_seconds
        self.session_name_prefix = session_name_prefix
        self._clock = clock

    def resolve(
        self,
        profile: Optional[str] = None,
        chain_role_arn: Optional[str] = None,
    ) -> ResolvedIdentity:
        """
        Resolve e verifica as credenciais desta execução.

        `profile` / `chain_role_arn` explícitos (vindos do CLI) têm precedência
        sobre AWS_PROFILE / ASSUME_ROLE_CHAIN_ARN.

        Raises:
            ConfigError: arquivo/profile ausente ou profile sem credenciais usáveis
            AuthError: verificação ou assume-role recusados
            InteractiveAbort: prompt de MFA interrompido
        """
        profile_name = profile or self.environ.get(ENV_PROFILE) or None
        chain_arn = chain_role_arn or self.environ.get(ENV_CHAIN_ROLE_ARN) or None

        if not profile_name:
            step = self._resolve_ambient()
        else:
            self._clear_ambient()
            profiles = self.store.load_profiles()
            selected = profiles.get(profile_name)
            if selected is None:
                raise ConfigError(f"AWS Profile [{profile_name}] isn't set.")

            cached = self._resolve_from_cache(chain_arn or profile_name, profile_name)
            if cached is not None:
                return self._finish(cached, profile_name)

            step = self._resolve_profile(selected, profiles)

        if chain_arn:
            step = self._chain_hop(step, chain_arn, profile_name)

        return self._finish(step, profile_name)

    def _clear_ambient(self) -> None:
        # Daqui em diante só vale o estado do próprio rolehop, nada herdado.
        for var in AMBIENT_CREDENTIAL_VARS:
            self.environ.pop(var, None)

    def _verify(self, context: Optional[CredentialContext], profile: Optional[str]) -> AwsIdentity:
        return self.verifier.verify(context, profile=profile)

    def _resolve_ambient(self) -> _Step:
        try:
            identity = self._verify(None, None)
        except AwsIdentityError as e:
            raise AuthError(
                "No profile was specified, and the default credential context is invalid: "
                f"{e}"
            ) from e

        logger.info("Authenticated as %s (ambient credentials)", identity.arn)
        return _Step(identity=identity, context=None, source=SOURCE_AMBIENT)

    def _resolve_from_cache(self, key: str, profile_name: str) -> Optional[_Step]:
        cache = self.store.load_cache()
        if cache is None or not cache.matches(key):
            return None

        now = self._clock()
        if not cache.is_usable(now, self.cache_margin_seconds):
            logger.info(
                "Cache for %s expires in %d minutes. Skipping.",
                key,
                _minutes(cache.remaining_ms(now)),
            )
            return None

        context = cache.to_context(self.region)
        try:
            identity = self._verify(context, profile_name)
        except AwsIdentityError as e:
            # Passou na validade mas a AWS recusou: descarta e resolve do zero.
            logger.warning("Cached session for %s failed verification, discarding: %s", key, e)
            self.store.delete_cache()
            return None

        logger.info(
            "Resumed session as %s; valid for %d minutes.",
            key,
            _minutes(cache.remaining_ms(now)),
        )
        return _Step(
            identity=identity,
            context=context,
            source=SOURCE_CACHE,
            expire_time=cache.expire_time,
        )

    def _resolve_profile(self, profile: Profile, profiles: Dict[str, Profile]) -> _Step:
        creds = profile.credentials

        if isinstance(creds, DirectKeys):
            return self._resolve_direct(profile.name, creds)

        if isinstance(creds, AssumedRole):
            return self._resolve_assumed(profile.name, creds, profiles)

        raise ConfigError(
            f"AWS Profile [{profile.name}] has neither long-term keys "
            "(aws_access_key_id/aws_secret_access_key) nor role_arn + source_profile."
        )

    def _resolve_direct(self, profile_name: str, keys: DirectKeys) -> _Step:
        context = CredentialContext(
            access_key_id=keys.access_key_id,
            secret_access_key=keys.secret_access_key,
            region=self.region,
        )
        try:
            identity = self._verify(context, profile_name)
        except AwsIdentityError as e:
            raise AuthError(
                f"Long term credentials for profile [{profile_name}] are invalid: {e}"
            ) from e

        # Chave de longo prazo não precisa de cache; o que houver ficou obsoleto.
        self.store.delete_cache()

        logger.info("Authenticated as %s", identity.arn)
        return _Step(identity=identity, context=context, source=SOURCE_DIRECT)

    def _resolve_assumed(
        self, profile_name: str, role: AssumedRole, profiles: Dict[str, Profile]
    ) -> _Step:
        source_profile = profiles.get(role.source_profile)
        if source_profile is None:
            raise ConfigError(
                f"Profile [{profile_name}] points to source_profile "
                f"[{role.source_profile}], which isn't set."
            )

        source_keys = source_profile.credentials
        if not isinstance(source_keys, DirectKeys):
            raise ConfigError(
                f"Source profile [{role.source_profile}] for [{profile_name}] "
                "has no long-term keys."
            )

        source = CredentialContext(
            access_key_id=source_keys.access_key_id,
            secret_access_key=source_keys.secret_access_key,
            region=self.region,
        )

        mfa: Optional[MfaToken] = None
        if role.mfa_serial:
            mfa = MfaToken(serial=role.mfa_serial, token=self.mfa_prompt.prompt(role.mfa_serial))

        assumed = self._assume(
            source,
            role.role_arn,
            role.duration_seconds or self.default_duration_seconds,
            mfa,
            via=role.source_profile,
        )
        identity = self._verify_assumed(assumed, role.role_arn, profile_name)

        self.store.save_cache(
            CachedSession.from_context(assumed.context, assumed.expire_time, profile_name)
        )

        logger.info("Successfully assumed role [%s]", role.role_arn)
        return _Step(
            identity=identity,
            context=assumed.context,
            source=SOURCE_ASSUMED,
            expire_time=assumed.expire_time,
        )

    def _chain_hop(self, step: _Step, chain_arn: str, profile_name: Optional[str]) -> _Step:
        source = step.context
        if source is None:
            source = self.ambient_loader() if self.ambient_loader else None
            if source is None:
                raise AuthError(
                    f"Cannot assume chained role {chain_arn}: the ambient credential "
                    "context has no exportable keys."
                )
            source = source.with_region(source.region or self.region)

        assumed = self._assume(
            source,
            chain_arn,
            self.default_duration_seconds,
            None,
            via=step.identity.arn,
        )
        identity = self._verify_assumed(assumed, chain_arn, profile_name)

        self.store.save_cache(CachedSession.from_context(assumed.context, assumed.expire_time, chain_arn))

        logger.info("Successfully assumed chained role [%s]", chain_arn)
        return _Step(
            identity=identity,
            context=assumed.context,
            source=SOURCE_CHAINED,
            expire_time=assumed.expire_time,
        )

    def _assume(
        self,
        source: CredentialContext,
        role_arn: str,
        duration_seconds: int,
        mfa: Optional[MfaToken],
        *,
        via: str,
    ) -> AssumedCredentials:
        try:
            return self.assumer.assume(
                source,
                role_arn,
                self.session_name_prefix,
                duration_seconds=duration_seconds,
                mfa=mfa,
            )
        except RoleAssumptionError as e:
            raise AuthError(f"Failed to assume role {role_arn} via {via}: {e}") from e

    def _verify_assumed(
        self, assumed: AssumedCredentials, role_arn: str, profile_name: Optional[str]
    ) -> AwsIdentity:
        try:
            return self._verify(assumed.context, profile_name)
        except AwsIdentityError as e:
            raise AuthError(
                f"Credentials for assumed role {role_arn} failed verification: {e}"
            ) from e

    def _finish(self, step: _Step, profile_name: Optional[str]) -> ResolvedIdentity:
        if step.context is not None:
            # Exporta para o ambiente: subprocessos (terraform) herdam daqui.
            self.environ.pop(ENV_PROFILE, None)
            self.environ.update(step.context.as_env())

        return ResolvedIdentity(
            identity=step.identity,
            source=step.source,
            context=step.context,
            profile=profile_name,
            expire_time=step.expire_time,
        )


def build_resolver(
    settings: Optional[Settings] = None,
    environ: Optional[MutableMapping[str, str]] = None,
    region: Optional[str] = None,
    mfa_prompt: Optional[TokenPrompt] = None,
) -> CredentialResolver:
    """Monta o resolver com as implementações reais (arquivo, STS, terminal)."""
    settings = settings or load_settings()
    region = region or settings.credentials.region

    return CredentialResolver(
        store=CredentialStore(settings.paths.credentials_file, settings.paths.cache_file),
        verifier=StsVerifier(region=region),
        assumer=StsRoleAssumer(region=region),
        mfa_prompt=mfa_prompt or MfaPrompt(),
        environ=environ,
        region=region,
        ambient_loader=lambda: load_ambient_context(region),
        cache_margin_seconds=settings.credentials.cache_margin_seconds,
        default_duration_seconds=settings.credentials.default_duration_seconds,
        session_name_prefix=settings.credentials.session_name_prefix,
    )
