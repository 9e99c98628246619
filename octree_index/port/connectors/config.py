from os import environ as env

from pydantic import BaseModel, Field


class HttpConfig(BaseModel):
    timeout: float = Field(alias='OCTREE_HTTP_TIMEOUT', default=30.0, gt=0)
    user_agent: str = Field(alias='OCTREE_HTTP_USER_AGENT', default='octree-index')


class S3Config(BaseModel):
    access_key: str = Field(alias='S3_ACCESS_KEY')
    secret_key: str = Field(alias='S3_SECRET_KEY')
    endpoint_url: str = Field(alias='S3_ENDPOINT_URL')
    region_name: str = Field(alias='S3_REGION_NAME', default='us-east-1')


class Config(BaseModel):
    http: HttpConfig = Field(default_factory=lambda: HttpConfig(**env))
