"""Register file, ALU, instruction variants and line decoder."""
