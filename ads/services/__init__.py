"""服务层: 生命周期编排、通用检查流水线与服务容器"""
