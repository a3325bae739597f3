# -*- coding: utf-8 -*-
"""认证

支持两种凭据：
1. Cloudflare Access 断言头（Cf-Access-Jwt-Assertion），存在即视为已认证
2. 静态共享密钥：X-API-Key 头，或 Authorization: Bearer <key>

密钥只做精确字符串比较，永不写入日志。
"""
import secrets
from typing import Mapping, Optional

ACCESS_ASSERTION_HEADER = "cf-access-jwt-assertion"
API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "authorization"
BEARER_PREFIX = "Bearer "


def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """大小写不敏感地读取请求头"""
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                return candidate
    return value


def extract_api_key(headers: Mapping[str, str]) -> Optional[str]:
    """从 X-API-Key 或 Bearer 令牌中取出密钥"""
    key = _get_header(headers, API_KEY_HEADER)
    if key:
        return key

    authorization = _get_header(headers, AUTHORIZATION_HEADER)
    if authorization and authorization.startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):]
    return None


def is_authenticated(headers: Mapping[str, str], api_key: Optional[str]) -> bool:
    """
    判断请求是否已认证

    Args:
        headers: 请求头
        api_key: 配置的共享密钥，None 表示未启用密钥认证

    Returns:
        是否通过认证
    """
    if _get_header(headers, ACCESS_ASSERTION_HEADER):
        return True

    if api_key:
        provided = extract_api_key(headers)
        if provided:
            return secrets.compare_digest(provided.encode("utf-8"), api_key.encode("utf-8"))

    return False
