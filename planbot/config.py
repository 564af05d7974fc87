"""Project configuration file."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from environs import Env
from sqlalchemy import URL


@dataclass
class TgBot:
    """Telegram bot configuration.

    Attributes:
        environment: Server environment (prod or dev)
        token: Bot token from @BotFather

        use_redis: Whether to keep FSM state in Redis

        use_webhook: Whether to run in webhook mode
        webhook_domain: Webhook domain
        webhook_path: Custom webhook path
        webhook_secret: Webhook secret token
        webhook_port: Webhook port
    """

    environment: str
    token: str
    use_redis: bool
    use_webhook: bool
    webhook_domain: Optional[str] = None
    webhook_path: Optional[str] = None
    webhook_secret: Optional[str] = None
    webhook_port: int = 8443

    @staticmethod
    def from_env(env: Env):
        """Builds a TgBot object from environment variables.

        Args:
            env: Environment reader

        Returns:
            Populated TgBot object
        """
        environment = env.str("ENVIRONMENT", "prod")
        token = env.str("BOT_TOKEN")
        use_redis = env.bool("USE_REDIS", False)
        use_webhook = env.bool("USE_WEBHOOK", False)
        webhook_domain = env.str("WEBHOOK_DOMAIN", None)
        webhook_path = env.str("WEBHOOK_PATH", "/planning")
        webhook_secret = env.str("WEBHOOK_SECRET", None)
        webhook_port = env.int("WEBHOOK_PORT", 8443)

        return TgBot(
            environment=environment,
            token=token,
            use_redis=use_redis,
            use_webhook=use_webhook,
            webhook_domain=webhook_domain,
            webhook_path=webhook_path,
            webhook_secret=webhook_secret,
            webhook_port=webhook_port,
        )


@dataclass
class DbConfig:
    """Database connection configuration.

    Attributes:
        host: Server address
        user: Database login
        password: Database password
        name: Planning database name
        port: Server port
    """

    host: str
    user: str
    password: str
    name: str
    port: int = 3306

    def construct_sqlalchemy_url(
        self,
        db_name=None,
        driver="aiomysql",
    ) -> URL:
        """Builds the SQLAlchemy URL for the MariaDB connection.

        Args:
            db_name: Database name, defaults to the configured one
            driver: Driver used for the connection

        Returns:
            SQLAlchemy connection URL
        """
        connection_url = URL.create(
            f"mysql+{driver}",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=db_name or self.name,
            query={
                "charset": "utf8mb4",
            },
        )

        return connection_url

    @staticmethod
    def from_env(env: Env):
        """Builds a DbConfig object from environment variables.

        Args:
            env: Environment reader

        Returns:
            Populated DbConfig object
        """
        host = env.str("DB_HOST")
        user = env.str("DB_USER")
        password = env.str("DB_PASS")
        name = env.str("PLANNING_DB_NAME")
        port = env.int("DB_PORT", 3306)

        return DbConfig(host=host, user=user, password=password, name=name, port=port)


@dataclass
class RedisConfig:
    """Redis connection configuration.

    Attributes:
        redis_host: Redis server address
        redis_port: Redis server port
        redis_pass: Redis password
    """

    redis_pass: Optional[str]
    redis_port: Optional[int]
    redis_host: Optional[str]

    def dsn(self) -> str:
        """Builds the Redis DSN.

        Returns:
            Connection string for Redis
        """
        if self.redis_pass:
            return f"redis://:{self.redis_pass}@{self.redis_host}:{self.redis_port}/0"
        else:
            return f"redis://{self.redis_host}:{self.redis_port}/0"

    @staticmethod
    def from_env(env: Env):
        """Builds a RedisConfig object from environment variables.

        Args:
            env: Environment reader

        Returns:
            Populated RedisConfig object
        """
        redis_pass = env.str("REDIS_PASSWORD", None)
        redis_port = env.int("REDIS_PORT", 6379)
        redis_host = env.str("REDIS_HOST", "localhost")

        return RedisConfig(
            redis_pass=redis_pass, redis_port=redis_port, redis_host=redis_host
        )


@dataclass
class PlanningConfig:
    """Planning engine configuration.

    Attributes:
        uploads_dir: Folder where imported planning workbooks are archived
        vacation_ics_url: ICS feed of the school vacation zone
        vacation_zone: Human readable zone name, used in logs
        http_timeout: Timeout for calendar HTTP requests in seconds
        import_timeout: Upper bound for the import transaction in seconds
        timezone: Local time zone of the institution
    """

    uploads_dir: Path = Path("uploads/planning")
    vacation_ics_url: str = (
        "https://fr.ftp.opendatasoft.com/openscol/fr-en-calendrier-scolaire/Zone-C.ics"
    )
    vacation_zone: str = "Zone C"
    http_timeout: float = 10.0
    import_timeout: float = 120.0
    timezone: str = "Europe/Paris"

    @staticmethod
    def from_env(env: Env):
        """Builds a PlanningConfig object from environment variables.

        Args:
            env: Environment reader

        Returns:
            Populated PlanningConfig object
        """
        defaults = PlanningConfig()
        return PlanningConfig(
            uploads_dir=env.path("PLANNING_UPLOADS_DIR", defaults.uploads_dir),
            vacation_ics_url=env.str("VACATION_ICS_URL", defaults.vacation_ics_url),
            vacation_zone=env.str("VACATION_ZONE", defaults.vacation_zone),
            http_timeout=env.float("CALENDAR_HTTP_TIMEOUT", defaults.http_timeout),
            import_timeout=env.float("IMPORT_TIMEOUT", defaults.import_timeout),
            timezone=env.str("PLANNING_TIMEZONE", defaults.timezone),
        )


@dataclass
class Config:
    """Main configuration class.

    Gives centralised access to every configuration section.

    Attributes:
        tg_bot: Telegram bot settings
        db: Database connection settings
        redis: Redis connection settings
        planning: Planning engine settings
    """

    tg_bot: TgBot
    db: Optional[DbConfig]
    redis: Optional[RedisConfig]
    planning: PlanningConfig


def load_config(path: str = None) -> Config:
    """Loads the configuration from environment variables.

    Reads the .env file when a path is given, the process environment otherwise.

    Args:
        path: Optional path to an environment file

    Returns:
        Config object with one attribute per configuration section
    """
    env = Env()
    env.read_env(path)

    tg_bot = TgBot.from_env(env)

    return Config(
        tg_bot=tg_bot,
        db=DbConfig.from_env(env),
        redis=RedisConfig.from_env(env) if tg_bot.use_redis else None,
        planning=PlanningConfig.from_env(env),
    )
