from portfolio_chat.server import main

main()
