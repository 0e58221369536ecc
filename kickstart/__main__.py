from kickstart.pipeline import main

main()
