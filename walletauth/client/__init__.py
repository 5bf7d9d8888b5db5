# Wallet client
