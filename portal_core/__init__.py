# 微服务演示门户：注册中心发现、按需解析、可用性门控调用
