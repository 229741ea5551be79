from sitecascade.bootstrap.entrypoints import main

main()
