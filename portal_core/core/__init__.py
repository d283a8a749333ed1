# 门户核心：配置、传输、服务发现、门控调用
