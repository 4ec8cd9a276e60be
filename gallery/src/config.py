import os
from pathlib import Path
import dotenv
from pydantic import BaseModel


class Config(BaseModel):
    django_secret_key: str
    allowed_hosts: list[str] = []
    debug: bool = False

    # Single allow-listed identity for the admin write path
    admin_email: str
    cron_secret: str | None = None

    aws_region: str
    aws_endpoint_url: str | None = None
    bucket_name: str = "myart"
    aws_access_key_id: str
    aws_secret_access_key: str

    # Postgres is optional; without POSTGRES_DB the project runs on SQLite
    postgres_user: str | None = None
    postgres_password: str | None = None
    postgres_db: str | None = None
    postgres_host: str | None = None
    postgres_port: str | None = None

    # Image processing settings
    image_max_dimension: int = 1600
    image_jpeg_quality: int = 85

    # Concurrent storage lookups when ordering the history view
    history_lookup_workers: int = 8

    @property
    def storage_endpoint_url(self) -> str:
        if self.aws_endpoint_url:
            return self.aws_endpoint_url
        return f"https://{self.aws_region}.linodeobjects.com"


def create_config():
    env_files = [".env.dev", ".env.prod"]
    for env_file in env_files:
        if Path(env_file).exists():
            dotenv.load_dotenv(env_file)
            break

    django_secret_key = os.getenv("DJANGO_SECRET_KEY")
    debug = os.getenv("DEBUG", "False").lower() == "true"
    allowed_hosts = [
        host.strip() for host in os.getenv("ALLOWED_HOSTS", "").split(",") if host.strip()
    ]
    admin_email = os.getenv("ADMIN_EMAIL")
    cron_secret = os.getenv("CRON_SECRET") or None

    # AWS S3 / Linode Object Storage configuration
    aws_region = os.getenv("AWS_REGION")
    aws_endpoint_url = os.getenv("AWS_ENDPOINT_URL") or None
    bucket_name = os.getenv("BUCKET_NAME", "myart")
    aws_access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
    aws_secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
    # Postgres configuration
    postgres_user = os.getenv("POSTGRES_USER")
    postgres_password = os.getenv("POSTGRES_PASSWORD")
    postgres_db = os.getenv("POSTGRES_DB")
    postgres_host = os.getenv("POSTGRES_HOST")
    postgres_port = os.getenv("POSTGRES_PORT")
    # Optional tuning, with defaults
    image_max_dimension = int(os.getenv("IMAGE_MAX_DIMENSION", "1600"))
    image_jpeg_quality = int(os.getenv("IMAGE_JPEG_QUALITY", "85"))
    history_lookup_workers = int(os.getenv("HISTORY_LOOKUP_WORKERS", "8"))

    if not django_secret_key:
        raise ValueError("DJANGO_SECRET_KEY is not set")
    if not admin_email:
        raise ValueError("ADMIN_EMAIL is not set")
    if not aws_region:
        raise ValueError("AWS_REGION is not set")
    if not aws_access_key_id:
        raise ValueError("AWS_ACCESS_KEY_ID is not set")
    if not aws_secret_access_key:
        raise ValueError("AWS_SECRET_ACCESS_KEY is not set")
    if postgres_db and not (postgres_user and postgres_host):
        raise ValueError("POSTGRES_USER and POSTGRES_HOST must be set with POSTGRES_DB")
    if history_lookup_workers < 1:
        raise ValueError("HISTORY_LOOKUP_WORKERS must be at least 1")

    return Config(
        django_secret_key=django_secret_key,
        allowed_hosts=allowed_hosts,
        debug=debug,
        admin_email=admin_email,
        cron_secret=cron_secret,
        aws_region=aws_region,
        aws_endpoint_url=aws_endpoint_url,
        bucket_name=bucket_name,
        aws_access_key_id=aws_access_key_id,
        aws_secret_access_key=aws_secret_access_key,
        postgres_user=postgres_user,
        postgres_password=postgres_password,
        postgres_db=postgres_db,
        postgres_host=postgres_host,
        postgres_port=postgres_port,
        image_max_dimension=image_max_dimension,
        image_jpeg_quality=image_jpeg_quality,
        history_lookup_workers=history_lookup_workers,
    )


config = create_config()

if __name__ == "__main__":
    config = create_config()
    print(config)
