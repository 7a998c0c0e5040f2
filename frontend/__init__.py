# Frontend module
