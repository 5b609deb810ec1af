"""Loading and decoding of MCP2517FD/MCP2518FD register and RAM dumps."""