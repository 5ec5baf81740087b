"""Scanner, lexer and parser for the service section of proto files."""