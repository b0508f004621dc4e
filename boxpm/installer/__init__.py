"""模块安装

- store.py: 全局 / 本地存储目录
- sources.py: git clone / checkout 与 .tmpN 临时目录
- installer.py: Installer 公开接口
"""

from boxpm.installer.installer import Installer, parse_spec
from boxpm.installer.sources import GitSource
from boxpm.installer.store import Store

__all__ = ["GitSource", "Installer", "Store", "parse_spec"]
