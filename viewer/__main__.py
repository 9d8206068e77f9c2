from viewer.main import main

main()
