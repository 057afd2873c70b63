"""ORM 工具函数

提供通用的字符串处理和命名转换工具。
"""
import re


def to_snake_case(name: str) -> str:
    """驼峰命名转下划线命名（支持连续大写缩写如 E2E、API、URL）

    Examples:
        >>> to_snake_case("OrderItem")
        'order_item'
        >>> to_snake_case("APIClient")
        'api_client'
    """
    # 处理连续大写+数字后跟大写+小写：E2EOrder → E2E_Order, APIClient → API_Client
    result = re.sub(r'([A-Z\d]+)([A-Z][a-z])', r'\1_\2', name)
    # 处理小写字母后跟大写：orderItem → order_Item
    result = re.sub(r'([a-z])([A-Z])', r'\1_\2', result)
    return result.lower()


LIKE_ESCAPE = "\\"


def escape_like(value: str, escape: str = LIKE_ESCAPE) -> str:
    """转义 LIKE 模式中的通配符

    标签名按字面匹配，"%" 和 "_" 不能作为通配符生效。
    """
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )
