from brave_bridge.main import main

main()
