"""版本信息"""

__version__ = "0.1.0"
__author__ = "ytag contributors"
__description__ = "基于 SQLAlchemy 的命名空间标签库"
