"""Box - Neutron 原生扩展模块包管理器"""

__version__ = "1.0.0"
