"""核心领域: 模型、命令、分发、存储、修复策略、冲突解析与外部协作者"""
