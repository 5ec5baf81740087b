"""Service definition model built from generated Go code and proto files."""