import configparser
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from .errors import ConfigError
from .models import CachedSession, Profile

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Dono do formato em disco:
    - arquivo de credenciais (INI, uma seção por profile), somente leitura
    - cache de sessão (JSON, um único slot por usuário), leitura e escrita
    """

    def __init__(self, credentials_file: str | Path, cache_file: str | Path) -> None:
        self.credentials_file = Path(credentials_file)
        self.cache_file = Path(cache_file)

    def load_profiles(self) -> Dict[str, Profile]:
        if not self.credentials_file.exists():
            raise ConfigError(
                f"The credential file {self.credentials_file} is missing. "
                "Have you configured the AWS CLI yet? (`aws configure`)"
            )

        parser = configparser.ConfigParser(interpolation=None, default_section="__rolehop_no_defaults__")
        try:
            parser.read_string(self.credentials_file.read_text(encoding="utf-8"))
        except (OSError, configparser.Error) as e:
            raise ConfigError(
                f"Não foi possível ler o arquivo de credenciais {self.credentials_file}: {e}"
            ) from e

        return {
            name: Profile.from_section(name, parser[name])
            for name in parser.sections()
        }

    def load_profile(self, name: str) -> Profile:
        profiles = self.load_profiles()
        try:
            return profiles[name]
        except KeyError:
            raise ConfigError(
                f"AWS Profile [{name}] isn't set in {self.credentials_file}."
            ) from None

    def load_cache(self) -> Optional[CachedSession]:
        """
        Lê o cache de sessão. Ausente ou corrompido -> None, nunca erro:
        um cache ruim não pode bloquear uma resolução que daria certo do zero.
        """
        if not self.cache_file.exists():
            return None

        try:
            data = json.loads(self.cache_file.read_text(encoding="utf-8"))
            return CachedSession.from_dict(data)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError é subclasse de ValueError
            logger.warning("Ignoring unreadable session cache %s: %s", self.cache_file, e)
            return None

    def save_cache(self, session: CachedSession) -> None:
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)

            # O arquivo já nasce com 0600; o chmod cobre o caso de ele já existir
            # com permissão mais aberta.
            fd = os.open(self.cache_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(session.to_dict()))
            os.chmod(self.cache_file, 0o600)
        except OSError as e:
            raise ConfigError(
                f"Não foi possível gravar o cache de sessão {self.cache_file}: {e}"
            ) from e

        logger.debug("Session cache written for %s", session.profile)

    def delete_cache(self) -> None:
        try:
            self.cache_file.unlink()
        except FileNotFoundError:
            return
        logger.debug("Session cache %s removed", self.cache_file)
