"""
League player-allocation engine: batch waiver resolution and live playoff auctions.
"""
