"""Output layer — human (Rich) and JSON formatting of ServiceResult."""
