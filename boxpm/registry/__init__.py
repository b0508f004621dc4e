"""NUR 注册表客户端

- transport.py: file / http / https 下载
- parser.py: 索引与模块清单解析
- client.py: Registry 公开接口
"""

from boxpm.registry.client import Registry
from boxpm.registry.parser import (
    module_metadata_to_dict,
    parse_index,
    parse_module_metadata,
)
from boxpm.registry.transport import Transport

__all__ = [
    "Registry",
    "Transport",
    "module_metadata_to_dict",
    "parse_index",
    "parse_module_metadata",
]
