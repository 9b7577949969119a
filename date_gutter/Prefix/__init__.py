# Prefix package
# Description: Prefix synchronization engine for sequence + date line prefixes
