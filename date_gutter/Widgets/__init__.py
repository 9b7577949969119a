# Widgets package
# Description: Textual widgets hosting the prefix engine
