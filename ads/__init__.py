"""ads - 自动化依赖治理系统 (Automated Dependency System)"""

__version__ = "0.1.0"
