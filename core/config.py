"""
配置管理模块
使用Pydantic Settings从环境变量加载配置
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    应用配置类
    从环境变量加载配置，支持类型转换和验证
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # 未声明的 env 变量忽略，不抛出校验错误
    )

    # 应用配置
    app_host: str = "0.0.0.0"  # 应用主机地址，默认0.0.0.0（允许外部访问）
    app_port: int = 8000  # 应用端口，默认8000
    app_base_url: str = "http://localhost:8000"  # 基础URL，用于生成完整的访问链接
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL", description="日志级别")

    # CORS跨域配置
    cors_origins: List[str] = ["*"]  # 允许访问的域名列表

    # HERE API 配置（等时圈 / 路径规划）
    here_api_key: str = Field(
        "",
        validation_alias="HERE_API_KEY",
        description="HERE REST API Key",
    )
    here_isoline_url: str = Field(
        "https://isoline.router.hereapi.com/v8/isolines",
        validation_alias="HERE_ISOLINE_URL",
        description="HERE Isoline Routing v8 地址",
    )
    here_routes_url: str = Field(
        "https://router.hereapi.com/v8/routes",
        validation_alias="HERE_ROUTES_URL",
        description="HERE Routing v8 地址",
    )
    here_timeout_s: float = Field(
        15.0,
        validation_alias="HERE_TIMEOUT_S",
        description="HERE 请求超时时间（秒）",
    )
    here_max_isoline_range_s: int = Field(
        7200,
        validation_alias="HERE_MAX_ISOLINE_RANGE_S",
        description="等时圈最大时间范围（秒），超过则拒绝请求",
    )

    # 等时圈估算（Isochrone estimator）配置
    route_query_timeout_s: float = Field(
        5.0,
        validation_alias="ROUTE_QUERY_TIMEOUT_S",
        description="单次路径耗时查询的超时时间（秒）",
    )
    isochrone_sample_directions: int = Field(
        16,
        validation_alias="ISOCHRONE_SAMPLE_DIRECTIONS",
        description="估算等时圈时的采样方向数",
        ge=3,
    )


settings = Settings()
